"""
Typed simulation events.

Events are returned alongside the result so callers can assert on engine
behavior (rejected buys, forced liquidations, reconciliation problems)
without parsing log output.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

REASON_INSUFFICIENT_BALANCE = "insufficient_balance"


@dataclass(frozen=True)
class RejectedTrade:
    """A buy signal fired but the free balance could not fund it."""

    timestamp: datetime
    grid_index: int
    price: float
    required: float  # margin + fee
    available: float  # free balance at the time
    side: str = "buy"
    reason: str = REASON_INSUFFICIENT_BALANCE

    kind = "rejected_trade"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
            "grid_index": self.grid_index,
            "side": self.side,
            "price": self.price,
            "required": self.required,
            "available": self.available,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class BoundaryLiquidation:
    """A holding position was force-sold because price left the band upward."""

    timestamp: datetime
    grid_index: int
    price: float
    upper_price: float
    quantity: float

    kind = "boundary_liquidation"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
            "grid_index": self.grid_index,
            "price": self.price,
            "upper_price": self.upper_price,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class ReconciliationWarning:
    """Grid profit plus holding profit did not add up to total profit."""

    total_profit: float
    components_sum: float
    residual: float
    tolerance: float

    kind = "reconciliation_warning"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "total_profit": self.total_profit,
            "components_sum": self.components_sum,
            "residual": self.residual,
            "tolerance": self.tolerance,
        }


SimulationEvent = Union[RejectedTrade, BoundaryLiquidation, ReconciliationWarning]
