"""Core grid components — calculator, config, position state machine, executor."""

from grid_simulator.core.calculator import GridCalculator, GridSpacing
from grid_simulator.core.config import (
    GridConfig,
    GridSettings,
    VolatilityMode,
    VOLATILITY_PRESETS,
)
from grid_simulator.core.events import (
    BoundaryLiquidation,
    ReconciliationWarning,
    RejectedTrade,
    SimulationEvent,
)
from grid_simulator.core.executor import Account, Trade, TradeExecutor, TradeSide
from grid_simulator.core.position import (
    GridPosition,
    HoldingAsset,
    PositionStatus,
    TriggerPolicy,
    WaitingToBuy,
)

__all__ = [
    "GridCalculator",
    "GridSpacing",
    "GridConfig",
    "GridSettings",
    "VolatilityMode",
    "VOLATILITY_PRESETS",
    "BoundaryLiquidation",
    "ReconciliationWarning",
    "RejectedTrade",
    "SimulationEvent",
    "Account",
    "Trade",
    "TradeExecutor",
    "TradeSide",
    "GridPosition",
    "HoldingAsset",
    "PositionStatus",
    "TriggerPolicy",
    "WaitingToBuy",
]
