"""Price feed normalization.

The engine reads only ``timestamp`` and ``close``. Input may be a pandas
DataFrame (``timestamp`` column or a DatetimeIndex) or a sequence of
Candle records / dicts. Timestamps may be datetimes, ISO strings or epoch
milliseconds; all are converted to timezone-aware UTC datetimes.
"""

import math
from collections.abc import Sequence
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any, Union

import pandas as pd

from grid_simulator.engine.models import Candle
from grid_simulator.errors import DataError

PriceInput = Union[pd.DataFrame, Sequence[Candle], Sequence[dict[str, Any]]]


def to_frame(candles: PriceInput) -> pd.DataFrame:
    """Coerce any supported price input to a DataFrame."""
    if isinstance(candles, pd.DataFrame):
        return candles
    rows = [asdict(c) if is_dataclass(c) else dict(c) for c in candles]
    return pd.DataFrame(rows)


def _timestamps(df: pd.DataFrame) -> pd.Series:
    if "timestamp" in df.columns:
        raw = df["timestamp"]
    elif isinstance(df.index, pd.DatetimeIndex):
        raw = df.index.to_series()
    else:
        raise DataError("price data needs a 'timestamp' column or a DatetimeIndex")

    try:
        if pd.api.types.is_numeric_dtype(raw):
            return pd.to_datetime(raw, unit="ms", utc=True)
        return pd.to_datetime(raw, utc=True)
    except (ValueError, TypeError) as e:
        raise DataError(f"unparseable timestamps: {e}") from e


def load_price_series(candles: PriceInput) -> list[tuple[datetime, float]]:
    """
    Validate and convert candles to an ordered list of (timestamp, close).

    Raises:
        DataError: empty input, missing columns, non-finite or non-positive
            closes, or timestamps that are not strictly ascending.
    """
    df = to_frame(candles)
    if len(df) == 0:
        raise DataError("price data is empty")
    if "close" not in df.columns:
        raise DataError("price data needs a 'close' column")

    stamps = _timestamps(df)
    try:
        closes = df["close"].astype(float).tolist()
    except (ValueError, TypeError) as e:
        raise DataError(f"non-numeric close prices: {e}") from e

    for i, close in enumerate(closes):
        if not math.isfinite(close) or close <= 0:
            raise DataError(f"close price at row {i} must be positive and finite, got {close}")

    if stamps.isna().any():
        raise DataError("price data contains missing timestamps")
    if not stamps.is_monotonic_increasing or stamps.duplicated().any():
        raise DataError("timestamps must be strictly ascending")

    return [(ts.to_pydatetime(), close) for ts, close in zip(stamps, closes)]
