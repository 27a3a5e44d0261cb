"""Shared test fixtures and helpers for grid simulator tests."""

import numpy as np
import pandas as pd
import pytest

from grid_simulator.core.config import GridConfig


def make_series(prices: list[float], start: str = "2025-01-01", freq: str = "1h") -> pd.DataFrame:
    """Candles with the given closes at a fixed interval."""
    stamps = pd.date_range(start=start, periods=len(prices), freq=freq, tz="UTC")
    return pd.DataFrame({
        "timestamp": stamps,
        "open": prices,
        "high": prices,
        "low": prices,
        "close": [float(p) for p in prices],
        "volume": [1.0] * len(prices),
    })


def make_candles(
    n: int = 100,
    start_price: float = 2000.0,
    volatility: float = 0.01,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate synthetic hourly OHLCV candles as a random walk."""
    rng = np.random.RandomState(seed)
    prices = [start_price]
    for _ in range(n - 1):
        change = rng.normal(0, volatility)
        prices.append(prices[-1] * (1 + change))

    rows = []
    stamps = pd.date_range(start="2025-01-01", periods=n, freq="1h", tz="UTC")
    for i, close in enumerate(prices):
        high = close * (1 + abs(rng.normal(0, volatility / 2)))
        low = close * (1 - abs(rng.normal(0, volatility / 2)))
        open_price = prices[i - 1] if i > 0 else close
        rows.append({
            "timestamp": stamps[i],
            "open": open_price,
            "high": max(high, open_price, close),
            "low": min(low, open_price, close),
            "close": close,
            "volume": float(rng.uniform(100, 1000)),
        })

    return pd.DataFrame(rows)


def make_ranging_candles(
    n: int = 200,
    center: float = 2000.0,
    spread: float = 120.0,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate closes oscillating inside a band around center (ideal for a grid)."""
    rng = np.random.RandomState(seed)
    closes = []
    prev_close = center
    for _ in range(n):
        target = center + rng.uniform(-spread, spread)
        close = prev_close + (target - prev_close) * 0.5
        closes.append(close)
        prev_close = close
    closes[0] = center
    return make_series(closes)


@pytest.fixture
def default_config() -> GridConfig:
    return GridConfig(
        initial_capital=1_000_000,
        lower_bound_pct=-10,
        upper_bound_pct=10,
        grid_count=25,
        leverage=2,
        fee_rate=0.0002,
    )


@pytest.fixture
def candles_100():
    return make_candles(n=100)


@pytest.fixture
def ranging_candles_200():
    return make_ranging_candles(n=200)
