"""Tests for TradeExecutor accounting."""

from datetime import datetime, timedelta, timezone

import pytest

from grid_simulator.core.config import GridConfig
from grid_simulator.core.events import RejectedTrade
from grid_simulator.core.executor import Account, Trade, TradeExecutor, TradeSide
from grid_simulator.core.position import GridPosition, WaitingToBuy

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=3)


def make_position(margin: float = 1000.0) -> GridPosition:
    return GridPosition(
        grid_index=0,
        grid_price=100.0,
        grid_step=10.0,
        allocated=margin,
        state=WaitingToBuy(margin=margin, armed=True),
    )


def make_executor(leverage: float = 1.0, fee_rate: float = 0.0) -> TradeExecutor:
    return TradeExecutor(GridConfig(leverage=leverage, fee_rate=fee_rate))


class TestBuy:

    def test_unleveraged_buy(self):
        executor = make_executor(fee_rate=0.001)
        account = Account(free_balance=5000.0)
        pos = make_position()

        trade = executor.buy(pos, 100.0, T0, account)

        assert isinstance(trade, Trade)
        assert trade.side == TradeSide.BUY
        assert trade.quantity == pytest.approx(10.0)
        assert trade.notional == pytest.approx(1000.0)
        assert trade.fee == pytest.approx(1.0)
        assert account.free_balance == pytest.approx(3999.0)
        assert trade.balance == account.free_balance
        assert pos.is_holding
        assert account.trades == [trade]

    def test_leveraged_buy_borrows(self):
        executor = make_executor(leverage=3.0, fee_rate=0.001)
        account = Account(free_balance=5000.0)
        pos = make_position()

        trade = executor.buy(pos, 100.0, T0, account)

        assert trade.notional == pytest.approx(3000.0)
        assert trade.quantity == pytest.approx(30.0)
        assert pos.state.borrowed == pytest.approx(2000.0)
        # fee is charged on margin, not on notional
        assert trade.fee == pytest.approx(1.0)
        assert account.free_balance == pytest.approx(3999.0)

    def test_rejected_when_balance_short(self):
        executor = make_executor(fee_rate=0.001)
        account = Account(free_balance=500.0)
        pos = make_position()

        outcome = executor.buy(pos, 100.0, T0, account)

        assert isinstance(outcome, RejectedTrade)
        assert outcome.grid_index == 0
        assert outcome.required == pytest.approx(1001.0)
        assert outcome.available == 500.0
        assert outcome.reason == "insufficient_balance"
        assert not pos.is_holding
        assert account.free_balance == 500.0
        assert account.trades == []

    def test_exact_balance_is_enough(self):
        executor = make_executor(fee_rate=0.001)
        account = Account(free_balance=1001.0)
        trade = executor.buy(make_position(), 100.0, T0, account)
        assert isinstance(trade, Trade)
        assert account.free_balance == pytest.approx(0.0)

    def test_buy_cost(self):
        fee, required = make_executor(fee_rate=0.002).buy_cost(500.0)
        assert fee == pytest.approx(1.0)
        assert required == pytest.approx(501.0)


class TestSell:

    def test_round_trip_unleveraged(self):
        fee_rate = 0.001
        executor = make_executor(fee_rate=fee_rate)
        account = Account(free_balance=5000.0)
        pos = make_position()

        buy = executor.buy(pos, 100.0, T0, account)
        sell = executor.sell(pos, 110.0, T1, account)

        q = buy.quantity
        expected = (110.0 - 100.0) * q - fee_rate * 100.0 * q - fee_rate * 110.0 * q
        assert sell.profit == pytest.approx(expected)
        assert sell.profit == pytest.approx(97.9)
        assert account.free_balance == pytest.approx(5000.0 + expected)
        assert account.total_fees == pytest.approx(2.1)

    def test_round_trip_without_fees(self):
        executor = make_executor()
        account = Account(free_balance=5000.0)
        pos = make_position()

        executor.buy(pos, 100.0, T0, account)
        sell = executor.sell(pos, 110.0, T1, account)

        assert sell.profit == pytest.approx(100.0)
        assert sell.profit_pct == pytest.approx(0.1)
        assert account.free_balance == pytest.approx(5100.0)

    def test_leveraged_round_trip_repays_borrowed(self):
        executor = make_executor(leverage=3.0)
        account = Account(free_balance=5000.0)
        pos = make_position()

        executor.buy(pos, 100.0, T0, account)
        assert account.free_balance == pytest.approx(4000.0)
        sell = executor.sell(pos, 105.0, T1, account)

        assert sell.notional == pytest.approx(3150.0)
        assert sell.profit == pytest.approx(150.0)
        assert account.free_balance == pytest.approx(5150.0)
        # net proceeds become the next margin
        assert pos.state == WaitingToBuy(margin=pytest.approx(1150.0))

    def test_leveraged_profit_with_fees(self):
        fee_rate = 0.001
        executor = make_executor(leverage=3.0, fee_rate=fee_rate)
        account = Account(free_balance=5000.0)
        pos = make_position()

        executor.buy(pos, 100.0, T0, account)
        sell = executor.sell(pos, 105.0, T1, account)

        assert sell.profit == pytest.approx(150.0 - 1000.0 * fee_rate - 3150.0 * fee_rate)
        assert account.free_balance == pytest.approx(5000.0 + sell.profit)

    def test_holding_duration(self):
        executor = make_executor()
        account = Account(free_balance=5000.0)
        pos = make_position()

        executor.buy(pos, 100.0, T0, account)
        sell = executor.sell(pos, 110.0, T1, account)

        assert sell.holding_duration == timedelta(hours=3)
        assert sell.to_dict()["holding_seconds"] == 3 * 3600

    def test_sell_without_holding(self):
        executor = make_executor()
        with pytest.raises(ValueError):
            executor.sell(make_position(), 100.0, T0, Account(free_balance=1000.0))

    def test_trade_to_dict(self):
        executor = make_executor()
        account = Account(free_balance=5000.0)
        trade = executor.buy(make_position(), 100.0, T0, account)
        d = trade.to_dict()
        assert d["side"] == "buy"
        assert d["timestamp"] == T0.isoformat()
        assert d["profit"] is None
        assert d["holding_seconds"] is None
