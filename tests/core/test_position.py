"""Tests for the per-level position state machine."""

from datetime import datetime, timezone

import pytest

from grid_simulator.core.config import GridConfig
from grid_simulator.core.position import (
    GridPosition,
    HoldingAsset,
    PositionStatus,
    TriggerPolicy,
    WaitingToBuy,
)

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)

# Levels 90, 95, 100, 105, 110; 1000 margin per tradable level
LEVELS = (90.0, 95.0, 100.0, 105.0, 110.0)


@pytest.fixture
def config():
    return GridConfig(initial_capital=4000, grid_count=5, leverage=1, fee_rate=0.0)


@pytest.fixture
def policy(config):
    return TriggerPolicy.from_config(config, LEVELS)


@pytest.fixture
def positions(config):
    return GridPosition.seed(LEVELS, config)


class TestSeed:

    def test_one_position_per_level(self, positions):
        assert [p.grid_index for p in positions] == [0, 1, 2, 3, 4]
        assert [p.grid_price for p in positions] == list(LEVELS)
        assert all(p.status == PositionStatus.WAITING_TO_BUY for p in positions)

    def test_top_level_gets_no_margin(self, positions):
        assert positions[-1].allocated == 0.0
        assert positions[-1].margin == 0.0
        assert all(p.margin == 1000.0 for p in positions[:-1])

    def test_grid_steps(self, positions):
        assert positions[0].grid_step == 5.0
        assert positions[-1].grid_step == 5.0

    def test_starts_unarmed(self, positions):
        assert all(not p.state.armed for p in positions)


class TestTriggerPolicy:

    def test_band_from_levels(self, policy):
        assert policy.lower_price == 90.0
        assert policy.upper_price == 110.0

    def test_in_band_inclusive(self, policy):
        assert policy.in_band(90.0)
        assert policy.in_band(110.0)
        assert not policy.in_band(89.99)
        assert not policy.in_band(110.01)


class TestBuyEligibility:

    def test_unarmed_position_does_not_buy(self, positions, policy):
        assert not positions[1].should_buy(95.0, policy)

    def test_arms_when_price_seen_above_band(self, positions, policy):
        pos = positions[1]
        pos.observe(95.05, policy)
        assert not pos.state.armed
        pos.observe(96.0, policy)
        assert pos.state.armed

    def test_armed_position_buys_on_touch(self, positions, policy):
        pos = positions[1]
        pos.observe(100.0, policy)
        assert pos.should_buy(95.0, policy)
        assert pos.should_buy(95.09, policy)
        assert not pos.should_buy(96.0, policy)

    def test_no_buy_below_lower_bound(self, positions, policy):
        pos = positions[0]
        pos.observe(100.0, policy)
        assert pos.should_buy(90.0, policy)
        assert not pos.should_buy(89.0, policy)

    def test_top_level_never_buys(self, positions, policy):
        top = positions[-1]
        top.observe(120.0, policy)
        assert top.state.armed
        assert not top.should_buy(110.0, policy)

    def test_disarm(self, positions, policy):
        pos = positions[1]
        pos.observe(100.0, policy)
        pos.disarm()
        assert not pos.should_buy(95.0, policy)

    def test_holding_position_does_not_buy(self, positions, policy):
        pos = positions[1]
        pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        assert not pos.should_buy(95.0, policy)


class TestSellEligibility:

    @pytest.fixture
    def holding(self, positions):
        pos = positions[1]
        pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        return pos

    def test_sell_target_one_step_above_fill(self, holding, policy):
        assert holding.sell_target(policy) == 100.0

    def test_sells_at_target_within_tolerance(self, holding, policy):
        assert holding.should_sell(100.0, policy)
        assert holding.should_sell(99.95, policy)
        assert not holding.should_sell(99.8, policy)

    def test_forced_sell_above_upper(self, holding, policy):
        assert holding.should_sell(110.5, policy)

    def test_never_sells_below_lower(self, positions, policy):
        pos = positions[0]
        pos.open(quantity=10.0, fill_price=90.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        assert not pos.should_sell(80.0, policy)

    def test_waiting_position_does_not_sell(self, positions, policy):
        assert not positions[1].should_sell(200.0, policy)

    def test_take_profit_steps(self):
        wide = GridConfig(
            initial_capital=4000, grid_count=5, leverage=1, fee_rate=0.0, take_profit_steps=2.0
        )
        policy = TriggerPolicy.from_config(wide, LEVELS)
        pos = GridPosition.seed(LEVELS, wide)[1]
        pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        assert pos.sell_target(policy) == 105.0
        assert not pos.should_sell(100.0, policy)

    def test_sell_target_requires_holding(self, positions, policy):
        with pytest.raises(ValueError):
            positions[1].sell_target(policy)


class TestTransitions:

    def test_open_keeps_margin(self, positions):
        pos = positions[1]
        pos.open(quantity=20.0, fill_price=100.0, fill_time=T0, borrowed=1000.0, buy_fee=2.0)
        assert pos.is_holding
        assert pos.status == PositionStatus.HOLDING_ASSET
        assert pos.quantity == 20.0
        assert pos.margin == 1000.0
        assert isinstance(pos.state, HoldingAsset)
        assert pos.state.cost_basis == 1002.0

    def test_open_twice(self, positions):
        pos = positions[1]
        pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        with pytest.raises(ValueError):
            pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)

    def test_close_returns_holding_and_resets(self, positions):
        pos = positions[1]
        pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        closed = pos.close(net_proceeds=1050.0)
        assert closed.fill_price == 95.0
        assert pos.state == WaitingToBuy(margin=1050.0)
        assert pos.quantity == 0.0

    def test_close_without_holding(self, positions):
        with pytest.raises(ValueError):
            positions[1].close(net_proceeds=0.0)

    def test_equity_net_of_borrowed(self, positions):
        pos = positions[1]
        pos.open(quantity=20.0, fill_price=100.0, fill_time=T0, borrowed=1000.0, buy_fee=0.0)
        assert pos.equity(110.0) == pytest.approx(1200.0)
        assert pos.unrealized_pnl(110.0) == pytest.approx(200.0)
        assert pos.unrealized_pnl(90.0) == pytest.approx(-200.0)

    def test_waiting_position_has_no_equity(self, positions):
        assert positions[1].equity(100.0) == 0.0
        assert positions[1].unrealized_pnl(100.0) == 0.0

    def test_to_dict(self, positions):
        pos = positions[1]
        assert pos.to_dict()["status"] == "waiting_to_buy"
        pos.open(quantity=10.0, fill_price=95.0, fill_time=T0, borrowed=0.0, buy_fee=0.0)
        d = pos.to_dict()
        assert d["status"] == "holding_asset"
        assert d["quantity"] == 10.0
        assert d["fill_time"] == T0.isoformat()
