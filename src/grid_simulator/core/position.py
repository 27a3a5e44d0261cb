"""
Per-level position state machine.

Each grid level owns exactly one GridPosition for the life of a run. Its
state is one of two tagged variants:

- WaitingToBuy: no asset held. ``margin`` is the cash earmarked for this
  level's next buy; the cash itself stays in the account's shared free
  balance until the buy executes.
- HoldingAsset: asset held on leverage. Carries the fill details plus the
  margin committed, the borrowed principal and the buy fee paid.

Eligibility depends on price alone:

- A waiting position is *armed* once a price above its buy band is seen.
  An armed position buys when the price falls to or below the band, as
  long as the price is inside [lower_price, upper_price].
- A holding position sells at its profit target inside the band, is
  always sold above upper_price, and is never sold below lower_price.
- The top level never opens a position: it gets no margin.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Union

from grid_simulator.core.calculator import GridCalculator
from grid_simulator.core.config import GridConfig


class PositionStatus(str, Enum):
    """Position lifecycle status."""

    WAITING_TO_BUY = "waiting_to_buy"
    HOLDING_ASSET = "holding_asset"


@dataclass(frozen=True)
class WaitingToBuy:
    """Holding cash (earmarked margin), waiting for the price to come down."""

    margin: float
    armed: bool = False


@dataclass(frozen=True)
class HoldingAsset:
    """Holding a leveraged asset position."""

    quantity: float
    fill_price: float
    fill_time: datetime
    margin: float
    borrowed: float
    buy_fee: float

    @property
    def notional(self) -> float:
        return self.quantity * self.fill_price

    @property
    def cost_basis(self) -> float:
        """Own capital sunk into the position: margin plus the buy fee."""
        return self.margin + self.buy_fee

    def equity(self, price: float) -> float:
        """Market value net of the borrowed principal."""
        return self.quantity * price - self.borrowed

    def unrealized_pnl(self, price: float) -> float:
        return self.equity(price) - self.cost_basis


PositionState = Union[WaitingToBuy, HoldingAsset]


@dataclass(frozen=True)
class TriggerPolicy:
    """Band and tolerances shared by every position of one run."""

    lower_price: float
    upper_price: float
    buy_tolerance_pct: float
    sell_tolerance_pct: float
    take_profit_steps: float

    @classmethod
    def from_config(cls, config: GridConfig, levels: tuple[float, ...]) -> "TriggerPolicy":
        return cls(
            lower_price=levels[0],
            upper_price=levels[-1],
            buy_tolerance_pct=config.buy_tolerance_pct,
            sell_tolerance_pct=config.sell_tolerance_pct,
            take_profit_steps=config.take_profit_steps,
        )

    def in_band(self, price: float) -> bool:
        return self.lower_price <= price <= self.upper_price


@dataclass
class GridPosition:
    """State machine for a single grid level."""

    grid_index: int
    grid_price: float
    grid_step: float
    allocated: float
    state: PositionState

    @classmethod
    def seed(cls, levels: tuple[float, ...], config: GridConfig) -> list["GridPosition"]:
        """Create one waiting position per level. The top level gets no margin."""
        top = len(levels) - 1
        positions = []
        for idx, price in enumerate(levels):
            allocated = 0.0 if idx == top else config.capital_per_grid
            positions.append(
                cls(
                    grid_index=idx,
                    grid_price=price,
                    grid_step=GridCalculator.grid_step(levels, idx),
                    allocated=allocated,
                    state=WaitingToBuy(margin=allocated),
                )
            )
        return positions

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def status(self) -> PositionStatus:
        if isinstance(self.state, HoldingAsset):
            return PositionStatus.HOLDING_ASSET
        return PositionStatus.WAITING_TO_BUY

    @property
    def is_holding(self) -> bool:
        return isinstance(self.state, HoldingAsset)

    @property
    def quantity(self) -> float:
        return self.state.quantity if isinstance(self.state, HoldingAsset) else 0.0

    @property
    def margin(self) -> float:
        return self.state.margin

    def equity(self, price: float) -> float:
        """Contribution of this position to account value at ``price``."""
        if isinstance(self.state, HoldingAsset):
            return self.state.equity(price)
        return 0.0

    def unrealized_pnl(self, price: float) -> float:
        if isinstance(self.state, HoldingAsset):
            return self.state.unrealized_pnl(price)
        return 0.0

    def buy_trigger(self, policy: TriggerPolicy) -> float:
        """Highest price at which this level counts as touched from above."""
        return self.grid_price * (1 + policy.buy_tolerance_pct)

    def sell_target(self, policy: TriggerPolicy) -> float:
        """Profit target price before tolerance. Only defined while holding."""
        if not isinstance(self.state, HoldingAsset):
            raise ValueError(f"grid {self.grid_index} holds no asset")
        return self.state.fill_price + self.grid_step * policy.take_profit_steps

    # -------------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------------

    def should_buy(self, price: float, policy: TriggerPolicy) -> bool:
        state = self.state
        if not isinstance(state, WaitingToBuy):
            return False
        if not state.armed or state.margin <= 0:
            return False
        if not policy.in_band(price):
            return False
        return price <= self.buy_trigger(policy)

    def should_sell(self, price: float, policy: TriggerPolicy) -> bool:
        state = self.state
        if not isinstance(state, HoldingAsset):
            return False
        if price > policy.upper_price:
            return True
        if price < policy.lower_price:
            return False
        return price >= self.sell_target(policy) * (1 - policy.sell_tolerance_pct)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def observe(self, price: float, policy: TriggerPolicy) -> None:
        """Arm a waiting position once the price is seen above its buy band."""
        state = self.state
        if isinstance(state, WaitingToBuy) and not state.armed:
            if price > self.buy_trigger(policy):
                self.state = replace(state, armed=True)

    def disarm(self) -> None:
        if isinstance(self.state, WaitingToBuy):
            self.state = replace(self.state, armed=False)

    def open(
        self,
        quantity: float,
        fill_price: float,
        fill_time: datetime,
        borrowed: float,
        buy_fee: float,
    ) -> None:
        state = self.state
        if not isinstance(state, WaitingToBuy):
            raise ValueError(f"grid {self.grid_index} already holds an asset")
        self.state = HoldingAsset(
            quantity=quantity,
            fill_price=fill_price,
            fill_time=fill_time,
            margin=state.margin,
            borrowed=borrowed,
            buy_fee=buy_fee,
        )

    def close(self, net_proceeds: float) -> HoldingAsset:
        """Return to waiting with the net proceeds as the next margin."""
        state = self.state
        if not isinstance(state, HoldingAsset):
            raise ValueError(f"grid {self.grid_index} holds no asset")
        self.state = WaitingToBuy(margin=net_proceeds)
        return state

    def to_dict(self) -> dict:
        d = {
            "grid_index": self.grid_index,
            "grid_price": self.grid_price,
            "allocated": self.allocated,
            "status": self.status.value,
            "margin": self.margin,
            "quantity": self.quantity,
        }
        if isinstance(self.state, HoldingAsset):
            d["fill_price"] = self.state.fill_price
            d["fill_time"] = self.state.fill_time.isoformat()
            d["borrowed"] = self.state.borrowed
        return d
