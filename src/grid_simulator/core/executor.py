"""
TradeExecutor — applies buy/sell decisions to a single grid position.

Accounting (leverage L, fee rate f):

Buy with margin m at price p:
    notional = m * L, quantity = notional / p, borrowed = m * (L - 1)
    fee = m * f (charged on margin, not on notional)
    free balance -= m + fee

Sell of quantity q at price p (always the full quantity):
    proceeds = q * p, fee = proceeds * f
    free balance += proceeds - borrowed - fee
    realized profit = (p - fill_price) * q - buy_fee - sell_fee

The position goes back to waiting with ``proceeds - borrowed - fee`` as its
next margin. A buy the free balance cannot cover is not an error: the
executor returns a RejectedTrade event and leaves everything untouched.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from grid_simulator.core.config import GridConfig
from grid_simulator.core.events import RejectedTrade
from grid_simulator.core.position import GridPosition, HoldingAsset
from grid_simulator.logging import get_logger

logger = get_logger(__name__)


class TradeSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Trade:
    """Single executed trade."""

    side: TradeSide
    timestamp: datetime
    price: float
    quantity: float
    notional: float
    margin: float
    fee: float
    grid_index: int
    balance: float  # free balance after the trade
    profit: float | None = None  # sell only
    profit_pct: float | None = None  # sell only, relative to margin
    holding_duration: timedelta | None = None  # sell only

    def to_dict(self) -> dict[str, Any]:
        return {
            "side": self.side.value,
            "timestamp": self.timestamp.isoformat(),
            "price": self.price,
            "quantity": self.quantity,
            "notional": self.notional,
            "margin": self.margin,
            "fee": self.fee,
            "grid_index": self.grid_index,
            "balance": self.balance,
            "profit": self.profit,
            "profit_pct": self.profit_pct,
            "holding_seconds": (
                self.holding_duration.total_seconds()
                if self.holding_duration is not None
                else None
            ),
        }


@dataclass
class Account:
    """Shared cash of one simulation."""

    free_balance: float
    total_fees: float = 0.0
    trades: list[Trade] = field(default_factory=list)


class TradeExecutor:
    """Moves capital between the account and one position per call."""

    def __init__(self, config: GridConfig) -> None:
        self.leverage = config.leverage
        self.fee_rate = config.fee_rate

    def buy_cost(self, margin: float) -> tuple[float, float]:
        """Return (fee, total cash required) for a buy with this margin."""
        fee = margin * self.fee_rate
        return fee, margin + fee

    def buy(
        self,
        position: GridPosition,
        price: float,
        timestamp: datetime,
        account: Account,
    ) -> Trade | RejectedTrade:
        """Open a leveraged position with the position's full margin."""
        margin = position.margin
        fee, required = self.buy_cost(margin)

        if account.free_balance < required:
            logger.debug(
                "Buy rejected",
                grid=position.grid_index,
                price=price,
                required=round(required, 2),
                available=round(account.free_balance, 2),
            )
            return RejectedTrade(
                timestamp=timestamp,
                grid_index=position.grid_index,
                price=price,
                required=required,
                available=account.free_balance,
            )

        notional = margin * self.leverage
        quantity = notional / price
        borrowed = notional - margin

        position.open(
            quantity=quantity,
            fill_price=price,
            fill_time=timestamp,
            borrowed=borrowed,
            buy_fee=fee,
        )
        account.free_balance -= required
        account.total_fees += fee

        trade = Trade(
            side=TradeSide.BUY,
            timestamp=timestamp,
            price=price,
            quantity=quantity,
            notional=notional,
            margin=margin,
            fee=fee,
            grid_index=position.grid_index,
            balance=account.free_balance,
        )
        account.trades.append(trade)

        logger.debug(
            "Buy executed",
            grid=position.grid_index,
            price=price,
            quantity=quantity,
            margin=round(margin, 2),
            fee=round(fee, 4),
        )
        return trade

    def sell(
        self,
        position: GridPosition,
        price: float,
        timestamp: datetime,
        account: Account,
    ) -> Trade:
        """Close the position's full quantity and repay the borrowed principal."""
        state = position.state
        if not isinstance(state, HoldingAsset):
            raise ValueError(f"grid {position.grid_index} holds no asset to sell")

        proceeds = state.quantity * price
        fee = proceeds * self.fee_rate
        net = proceeds - state.borrowed - fee
        profit = (price - state.fill_price) * state.quantity - state.buy_fee - fee
        profit_pct = profit / state.margin if state.margin > 0 else 0.0

        position.close(net_proceeds=net)
        account.free_balance += net
        account.total_fees += fee

        trade = Trade(
            side=TradeSide.SELL,
            timestamp=timestamp,
            price=price,
            quantity=state.quantity,
            notional=proceeds,
            margin=state.margin,
            fee=fee,
            grid_index=position.grid_index,
            balance=account.free_balance,
            profit=profit,
            profit_pct=profit_pct,
            holding_duration=timestamp - state.fill_time,
        )
        account.trades.append(trade)

        logger.debug(
            "Sell executed",
            grid=position.grid_index,
            price=price,
            quantity=state.quantity,
            profit=round(profit, 4),
        )
        return trade
