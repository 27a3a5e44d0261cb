"""
Grid simulation configuration.

Two layers:
- GridConfig: frozen dataclass consumed by the engine, validated once on
  construction.
- GridSettings: pydantic schema for user input, loadable from YAML and
  from volatility presets, converted to GridConfig with to_config().
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from grid_simulator.core.calculator import GridSpacing
from grid_simulator.errors import ConfigError

# Narrowest accepted band, in percentage points of the base price.
MIN_BAND_WIDTH_PCT = 0.1
MAX_TOLERANCE_PCT = 0.01


# =============================================================================
# Engine Config
# =============================================================================


@dataclass(frozen=True)
class GridConfig:
    """Immutable run parameters for one simulation."""

    initial_capital: float = 1_000_000.0
    lower_bound_pct: float = -10.0  # percent below base price
    upper_bound_pct: float = 10.0  # percent above base price
    grid_count: int = 25
    spacing: GridSpacing = GridSpacing.ARITHMETIC
    leverage: float = 2.0
    fee_rate: float = 0.0002  # charged on margin for buys, on proceeds for sells
    buy_tolerance_pct: float = 0.001
    sell_tolerance_pct: float = 0.001
    take_profit_steps: float = 1.0  # sell target, in grid steps above the fill

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "spacing", GridSpacing(self.spacing))
        except ValueError as e:
            raise ConfigError(f"unknown grid spacing: {self.spacing!r}") from e
        self.validate()

    def validate(self) -> None:
        """Validate config values. Raises ConfigError naming the first bad field."""
        for name in (
            "initial_capital",
            "lower_bound_pct",
            "upper_bound_pct",
            "leverage",
            "fee_rate",
            "buy_tolerance_pct",
            "sell_tolerance_pct",
            "take_profit_steps",
        ):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigError(f"{name} must be a finite number, got {value!r}")

        if self.initial_capital <= 0:
            raise ConfigError("initial_capital must be positive")
        if self.lower_bound_pct <= -100:
            raise ConfigError("lower_bound_pct must be above -100")
        if self.lower_bound_pct >= self.upper_bound_pct:
            raise ConfigError("lower_bound_pct must be below upper_bound_pct")
        if self.upper_bound_pct - self.lower_bound_pct < MIN_BAND_WIDTH_PCT:
            raise ConfigError(
                f"band width must be at least {MIN_BAND_WIDTH_PCT} percentage points"
            )
        if isinstance(self.grid_count, bool) or not isinstance(self.grid_count, int):
            raise ConfigError("grid_count must be an integer")
        if self.grid_count < 2:
            raise ConfigError("grid_count must be at least 2")
        if self.leverage < 1:
            raise ConfigError("leverage must be at least 1")
        if not 0 <= self.fee_rate < 1:
            raise ConfigError("fee_rate must be in [0, 1)")
        for name in ("buy_tolerance_pct", "sell_tolerance_pct"):
            if not 0 <= getattr(self, name) <= MAX_TOLERANCE_PCT:
                raise ConfigError(f"{name} must be in [0, {MAX_TOLERANCE_PCT}]")
        if self.take_profit_steps <= 0:
            raise ConfigError("take_profit_steps must be positive")

    @property
    def tradable_grids(self) -> int:
        """Number of levels that can open a position. The top level never does."""
        return self.grid_count - 1

    @property
    def capital_per_grid(self) -> float:
        """Margin allocated to each tradable level at the start of a run."""
        return self.initial_capital / self.tradable_grids

    def summary(self, base_price: float | None = None) -> dict[str, Any]:
        """Human-readable summary of the run parameters."""
        return {
            "initial_capital": self.initial_capital,
            "price_range": f"{self.lower_bound_pct:g}% to {self.upper_bound_pct:g}%",
            "grid_count": self.grid_count,
            "grid_spacing": self.spacing.value,
            "leverage": f"{self.leverage:g}x",
            "fee_rate": f"{self.fee_rate * 100:.3f}%",
            "capital_per_grid": round(self.capital_per_grid, 2),
            "base_price": f"${base_price:.2f}" if base_price is not None else "Not set",
        }

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["spacing"] = self.spacing.value
        return d


# =============================================================================
# Volatility Presets
# =============================================================================


class VolatilityMode(str, Enum):
    """Volatility regime for grid configuration."""

    LOW = "low"  # tight range, many levels
    MEDIUM = "medium"  # BTC/ETH normal conditions
    HIGH = "high"  # wide range, geometric spacing
    CUSTOM = "custom"  # user-defined


VOLATILITY_PRESETS: dict[str, dict[str, Any]] = {
    "low": {
        "grid_spacing": "arithmetic",
        "grid_count": 40,
        "lower_bound_pct": -5.0,
        "upper_bound_pct": 5.0,
        "leverage": 1.0,
    },
    "medium": {
        "grid_spacing": "arithmetic",
        "grid_count": 25,
        "lower_bound_pct": -10.0,
        "upper_bound_pct": 10.0,
        "leverage": 2.0,
    },
    "high": {
        "grid_spacing": "geometric",
        "grid_count": 15,
        "lower_bound_pct": -25.0,
        "upper_bound_pct": 25.0,
        "leverage": 1.0,
    },
}


# =============================================================================
# Pydantic Settings Schema
# =============================================================================


class GridSettings(BaseModel):
    """
    User-facing grid simulation settings.

    Can be loaded from YAML, built from a volatility preset, and converted
    to the engine's GridConfig.
    """

    symbol: str = Field(default="ETHUSDT", description="Trading pair label")
    timeframe: str = Field(default="1h", description="Candle interval label")
    volatility_mode: VolatilityMode = Field(default=VolatilityMode.CUSTOM)

    initial_capital: float = Field(default=1_000_000.0, gt=0)
    lower_bound_pct: float = Field(default=-10.0, gt=-100)
    upper_bound_pct: float = Field(default=10.0)
    grid_count: int = Field(default=25, ge=2, le=1000)
    grid_spacing: str = Field(default="arithmetic", pattern="^(arithmetic|geometric)$")
    leverage: float = Field(default=2.0, ge=1, le=125)
    fee_rate: float = Field(default=0.0002, ge=0, lt=1)
    buy_tolerance_pct: float = Field(default=0.001, ge=0, le=MAX_TOLERANCE_PCT)
    sell_tolerance_pct: float = Field(default=0.001, ge=0, le=MAX_TOLERANCE_PCT)
    take_profit_steps: float = Field(default=1.0, gt=0)

    strict_reconciliation: bool = Field(
        default=False,
        description="Raise instead of emitting a warning event when profits do not reconcile",
    )

    @model_validator(mode="after")
    def validate_band(self) -> "GridSettings":
        """Lower bound must sit below the upper bound by the minimum width."""
        if self.upper_bound_pct - self.lower_bound_pct < MIN_BAND_WIDTH_PCT:
            raise ValueError(
                "upper_bound_pct must exceed lower_bound_pct by at least "
                f"{MIN_BAND_WIDTH_PCT} percentage points"
            )
        return self

    def to_config(self) -> GridConfig:
        """Convert to the engine's GridConfig."""
        return GridConfig(
            initial_capital=self.initial_capital,
            lower_bound_pct=self.lower_bound_pct,
            upper_bound_pct=self.upper_bound_pct,
            grid_count=self.grid_count,
            spacing=GridSpacing(self.grid_spacing),
            leverage=self.leverage,
            fee_rate=self.fee_rate,
            buy_tolerance_pct=self.buy_tolerance_pct,
            sell_tolerance_pct=self.sell_tolerance_pct,
            take_profit_steps=self.take_profit_steps,
        )

    @classmethod
    def from_preset(cls, symbol: str, mode: VolatilityMode, **overrides: Any) -> "GridSettings":
        """
        Create settings from a volatility preset with optional overrides.

        Args:
            symbol: Trading pair.
            mode: Volatility mode.
            **overrides: Override any preset value.
        """
        if mode == VolatilityMode.CUSTOM:
            return cls._build(symbol=symbol, volatility_mode=mode, **overrides)

        preset = VOLATILITY_PRESETS[mode.value].copy()
        preset.update(overrides)
        return cls._build(symbol=symbol, volatility_mode=mode, **preset)

    def to_yaml(self) -> str:
        """Serialize to YAML string."""
        data = self.model_dump(mode="json")
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "GridSettings":
        """Load from YAML string."""
        data = yaml.safe_load(yaml_str) or {}
        if not isinstance(data, dict):
            raise ConfigError("YAML settings must be a mapping")
        return cls._build(**data)

    @classmethod
    def from_yaml_file(cls, path: str) -> "GridSettings":
        """Load from YAML file."""
        with open(path, encoding="utf-8") as f:
            return cls.from_yaml(f.read())

    @classmethod
    def _build(cls, **data: Any) -> "GridSettings":
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"invalid grid settings: {e}") from e
