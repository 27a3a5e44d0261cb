"""
GridCalculator — Grid level calculation.

Supports:
- Percentage bands anchored at a base price
- Arithmetic grids (evenly spaced price levels)
- Geometric grids (constant ratio between levels)
- Local grid step lookup used by the sell target
"""

import math
from enum import Enum

from grid_simulator.errors import ConfigError
from grid_simulator.logging import get_logger

logger = get_logger(__name__)


class GridSpacing(str, Enum):
    """Grid spacing type."""

    ARITHMETIC = "arithmetic"
    GEOMETRIC = "geometric"


class GridCalculator:
    """
    Derives the ordered price levels of a grid.

    Levels are plain floats in ascending order; the index of a level is its
    grid index. The first and last levels are pinned to the exact band
    bounds so boundary checks compare against the same numbers the caller
    computed.
    """

    @staticmethod
    def price_bounds(
        base_price: float,
        lower_bound_pct: float,
        upper_bound_pct: float,
    ) -> tuple[float, float]:
        """Return (lower_price, upper_price) for a percentage band around base_price."""
        if not math.isfinite(base_price) or base_price <= 0:
            raise ConfigError(f"base price must be a positive finite number, got {base_price}")
        if lower_bound_pct >= upper_bound_pct:
            raise ConfigError(
                f"lower bound ({lower_bound_pct}%) must be below upper bound ({upper_bound_pct}%)"
            )
        lower = base_price * (1 + lower_bound_pct / 100)
        upper = base_price * (1 + upper_bound_pct / 100)
        return lower, upper

    @staticmethod
    def calculate_arithmetic_levels(
        lower_price: float,
        upper_price: float,
        num_levels: int,
    ) -> list[float]:
        """Calculate evenly spaced grid levels."""
        GridCalculator._check_range(lower_price, upper_price, num_levels)

        step = (upper_price - lower_price) / (num_levels - 1)
        levels = [lower_price + step * i for i in range(num_levels)]
        levels[-1] = upper_price
        return levels

    @staticmethod
    def calculate_geometric_levels(
        lower_price: float,
        upper_price: float,
        num_levels: int,
    ) -> list[float]:
        """Calculate ratio-based (geometric) grid levels."""
        GridCalculator._check_range(lower_price, upper_price, num_levels)
        if lower_price <= 0:
            raise ConfigError("lower price must be positive for a geometric grid")

        ratio = (upper_price / lower_price) ** (1.0 / (num_levels - 1))
        levels = [lower_price * ratio**i for i in range(num_levels)]
        levels[-1] = upper_price
        return levels

    @staticmethod
    def calculate_levels(
        lower_price: float,
        upper_price: float,
        num_levels: int,
        spacing: GridSpacing = GridSpacing.ARITHMETIC,
    ) -> list[float]:
        """Calculate grid levels using the specified spacing type."""
        if spacing == GridSpacing.ARITHMETIC:
            levels = GridCalculator.calculate_arithmetic_levels(
                lower_price, upper_price, num_levels
            )
        elif spacing == GridSpacing.GEOMETRIC:
            levels = GridCalculator.calculate_geometric_levels(
                lower_price, upper_price, num_levels
            )
        else:
            raise ConfigError(f"Unknown spacing type: {spacing}")

        if any(b <= a for a, b in zip(levels, levels[1:])):
            raise ConfigError("band is too narrow to hold distinct grid levels")

        logger.debug(
            "Grid levels calculated",
            spacing=GridSpacing(spacing).value,
            num_levels=num_levels,
            lower=lower_price,
            upper=upper_price,
        )
        return levels

    @staticmethod
    def grid_step(levels: list[float] | tuple[float, ...], index: int) -> float:
        """Distance from a level to the next level up (to the one below for the top level)."""
        if len(levels) < 2:
            raise ValueError("need at least two levels to measure a grid step")
        if index < len(levels) - 1:
            return levels[index + 1] - levels[index]
        return levels[index] - levels[index - 1]

    @staticmethod
    def grid_spacing_pct(levels: list[float] | tuple[float, ...]) -> list[float]:
        """Percentage spacing between consecutive grid levels."""
        return [
            (levels[i] - levels[i - 1]) / levels[i - 1] * 100
            for i in range(1, len(levels))
        ]

    @staticmethod
    def _check_range(lower_price: float, upper_price: float, num_levels: int) -> None:
        if num_levels < 2:
            raise ConfigError(f"grid count must be at least 2, got {num_levels}")
        if upper_price <= lower_price:
            raise ConfigError("upper price must be greater than lower price")
