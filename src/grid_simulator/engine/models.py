"""
Grid simulation data models — input candles, equity samples, metrics,
profit breakdown and the backtest result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from grid_simulator.core.config import GridConfig
from grid_simulator.core.events import SimulationEvent
from grid_simulator.core.executor import Trade

PROFIT_TOLERANCE = 0.01  # one cent


# =============================================================================
# Input
# =============================================================================


@dataclass(frozen=True)
class Candle:
    """One OHLCV candle. Only timestamp and close drive the simulation."""

    timestamp: datetime | int | str
    close: float
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: float = 0.0


# =============================================================================
# Equity Sample
# =============================================================================


@dataclass(frozen=True)
class EquitySample:
    """Account snapshot taken after all signals of one price tick."""

    timestamp: datetime
    price: float
    total_value: float
    free_balance: float
    unrealized_pnl: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "price": self.price,
            "total_value": self.total_value,
            "free_balance": self.free_balance,
            "unrealized_pnl": self.unrealized_pnl,
        }


# =============================================================================
# Metrics
# =============================================================================


@dataclass
class Metrics:
    """Performance metrics computed once after the run."""

    initial_value: float = 0.0
    final_value: float = 0.0
    total_profit: float = 0.0
    total_return: float = 0.0
    annualized_return: float = 0.0
    total_trades: int = 0
    buy_trades: int = 0
    sell_trades: int = 0
    profitable_trades: int = 0
    win_rate: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    avg_holding_hours: float = 0.0
    avg_profit: float = 0.0
    total_fees: float = 0.0
    elapsed_days: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "initial_value": round(self.initial_value, 2),
            "final_value": round(self.final_value, 2),
            "total_profit": round(self.total_profit, 2),
            "total_return": round(self.total_return, 6),
            "annualized_return": round(self.annualized_return, 6),
            "total_trades": self.total_trades,
            "buy_trades": self.buy_trades,
            "sell_trades": self.sell_trades,
            "profitable_trades": self.profitable_trades,
            "win_rate": round(self.win_rate, 4),
            "max_drawdown": round(self.max_drawdown, 6),
            "sharpe_ratio": round(self.sharpe_ratio, 4),
            "avg_holding_hours": round(self.avg_holding_hours, 2),
            "avg_profit": round(self.avg_profit, 4),
            "total_fees": round(self.total_fees, 4),
            "elapsed_days": round(self.elapsed_days, 4),
        }


# =============================================================================
# Profit Breakdown
# =============================================================================


@dataclass(frozen=True)
class ProfitVerification:
    """Proof that grid profit plus holding profit equals total profit."""

    components_sum: float
    total_profit: float
    residual: float
    tolerance: float = PROFIT_TOLERANCE

    @property
    def is_valid(self) -> bool:
        return abs(self.residual) <= self.tolerance


@dataclass(frozen=True)
class ProfitBreakdown:
    """Total profit split into realized grid profit and open-position profit."""

    grid_trading_profit: float
    holding_profit: float
    total_profit: float
    grid_trading_profit_pct: float
    holding_profit_pct: float
    total_profit_pct: float
    initial_value: float
    current_value: float
    free_balance: float
    current_price: float
    position_cost: float
    grid_trade_count: int
    active_positions: int
    verification: ProfitVerification

    def to_dict(self) -> dict[str, Any]:
        return {
            "grid_trading_profit": round(self.grid_trading_profit, 2),
            "grid_trading_profit_pct": round(self.grid_trading_profit_pct, 4),
            "holding_profit": round(self.holding_profit, 2),
            "holding_profit_pct": round(self.holding_profit_pct, 4),
            "total_profit": round(self.total_profit, 2),
            "total_profit_pct": round(self.total_profit_pct, 4),
            "breakdown": {
                "initial_value": round(self.initial_value, 2),
                "current_value": round(self.current_value, 2),
                "free_balance": round(self.free_balance, 2),
                "current_price": self.current_price,
                "position_cost": round(self.position_cost, 2),
                "grid_trade_count": self.grid_trade_count,
                "active_positions": self.active_positions,
                "verification": {
                    "components_sum": self.verification.components_sum,
                    "total_profit": self.verification.total_profit,
                    "residual": self.verification.residual,
                    "tolerance": self.verification.tolerance,
                    "is_valid": self.verification.is_valid,
                },
            },
        }


# =============================================================================
# Backtest Result
# =============================================================================


@dataclass
class BacktestResult:
    """Everything one simulation run produces."""

    config: GridConfig
    base_price: float
    levels: tuple[float, ...]
    trades: list[Trade] = field(default_factory=list)
    equity: list[EquitySample] = field(default_factory=list)
    events: list[SimulationEvent] = field(default_factory=list)
    metrics: Metrics = field(default_factory=Metrics)
    profit_breakdown: ProfitBreakdown | None = None
    final_positions: list[dict[str, Any]] = field(default_factory=list)

    # Filled in by GridBacktestSystem
    analysis: dict[str, Any] | None = None
    duration_seconds: float = 0.0

    def events_of(self, kind: type) -> list[Any]:
        """Events of one type, in emission order."""
        return [e for e in self.events if isinstance(e, kind)]

    @property
    def held_quantity(self) -> float:
        return sum(p["quantity"] for p in self.final_positions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (without heavy time series)."""
        return {
            "config": self.config.to_dict(),
            "config_summary": self.config.summary(self.base_price),
            "base_price": self.base_price,
            "lower_price": self.levels[0],
            "upper_price": self.levels[-1],
            "samples": len(self.equity),
            "metrics": self.metrics.to_dict(),
            "profit_breakdown": (
                self.profit_breakdown.to_dict() if self.profit_breakdown else None
            ),
            "events": len(self.events),
            "analysis": self.analysis,
            "duration_seconds": round(self.duration_seconds, 4),
        }
