"""EquityTracker — values the account after every price tick."""

from datetime import datetime

from grid_simulator.core.executor import Account
from grid_simulator.core.position import GridPosition
from grid_simulator.engine.models import EquitySample


class EquityTracker:
    """
    Appends one EquitySample per tick, trades or not.

    total value = free balance + sum of holding equity, where holding equity
    is quantity * price minus the borrowed principal. Waiting positions add
    nothing: their margin is still part of the free balance.
    """

    def __init__(self, account: Account, positions: list[GridPosition]) -> None:
        self.account = account
        self.positions = positions
        self.samples: list[EquitySample] = []

    def total_value(self, price: float) -> float:
        return self.account.free_balance + sum(p.equity(price) for p in self.positions)

    def unrealized_pnl(self, price: float) -> float:
        return sum(p.unrealized_pnl(price) for p in self.positions if p.is_holding)

    def record(self, timestamp: datetime, price: float) -> EquitySample:
        sample = EquitySample(
            timestamp=timestamp,
            price=price,
            total_value=self.total_value(price),
            free_balance=self.account.free_balance,
            unrealized_pnl=self.unrealized_pnl(price),
        )
        self.samples.append(sample)
        return sample
