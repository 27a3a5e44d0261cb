"""
GridSimulation — deterministic replay of a grid strategy over closes.

Composes:
- GridCalculator: band and level calculation
- GridPosition: per-level state machine
- TradeExecutor: leveraged buys and sells against the shared account
- EquityTracker: one snapshot per tick
- MetricsCalculator / ProfitReconciler: post-run report

Ordering is part of the contract: ticks in timestamp order, positions in
ascending grid index. Positions compete for one free balance, so the order
decides which buys succeed when cash runs short.
"""

from datetime import datetime

from grid_simulator.core.calculator import GridCalculator
from grid_simulator.core.config import GridConfig
from grid_simulator.core.events import BoundaryLiquidation, RejectedTrade, SimulationEvent
from grid_simulator.core.executor import Account, TradeExecutor
from grid_simulator.core.position import GridPosition, TriggerPolicy
from grid_simulator.engine.data import PriceInput, load_price_series
from grid_simulator.engine.equity import EquityTracker
from grid_simulator.engine.metrics import MetricsCalculator
from grid_simulator.engine.models import BacktestResult
from grid_simulator.engine.reconciler import ProfitReconciler
from grid_simulator.logging import get_logger

logger = get_logger(__name__)


class GridSimulation:
    """
    Runs a grid backtest on a close-price series.

    Usage:
        config = GridConfig(initial_capital=1_000_000, grid_count=25)
        result = GridSimulation(config).run(candles_df)

    Every call to run() builds its own positions, account and logs, so
    nothing leaks between runs.
    """

    def __init__(self, config: GridConfig, strict_reconciliation: bool = False) -> None:
        self.config = config
        self.executor = TradeExecutor(config)
        self.reconciler = ProfitReconciler(strict=strict_reconciliation)

        self.levels: tuple[float, ...] = ()
        self.policy: TriggerPolicy | None = None
        self.positions: list[GridPosition] = []
        self.account = Account(free_balance=config.initial_capital)
        self.events: list[SimulationEvent] = []

    def initialize(self, base_price: float) -> None:
        """Build levels and seed one waiting position per level."""
        lower, upper = GridCalculator.price_bounds(
            base_price, self.config.lower_bound_pct, self.config.upper_bound_pct
        )
        self.levels = tuple(
            GridCalculator.calculate_levels(lower, upper, self.config.grid_count, self.config.spacing)
        )
        self.policy = TriggerPolicy.from_config(self.config, self.levels)
        self.positions = GridPosition.seed(self.levels, self.config)
        self.account = Account(free_balance=self.config.initial_capital)
        self.events = []

        logger.info(
            "Grid initialized",
            base_price=base_price,
            lower=round(lower, 4),
            upper=round(upper, 4),
            num_levels=len(self.levels),
            leverage=self.config.leverage,
            capital_per_grid=round(self.config.capital_per_grid, 2),
        )

    def run(self, candles: PriceInput) -> BacktestResult:
        """Replay all candles and build the result.

        Raises:
            DataError: the price input is empty or malformed.
            ReconciliationMismatch: strict mode and the profit split is off.
        """
        series = load_price_series(candles)
        base_price = series[0][1]
        self.initialize(base_price)

        tracker = EquityTracker(self.account, self.positions)

        logger.info(
            "Starting grid simulation",
            samples=len(series),
            spacing=self.config.spacing.value,
            grid_count=self.config.grid_count,
        )

        for timestamp, price in series:
            self.process_tick(timestamp, price)
            tracker.record(timestamp, price)

        final_price = series[-1][1]
        metrics = MetricsCalculator.calculate(
            tracker.samples, self.account.trades, self.config.initial_capital
        )
        breakdown, warnings = self.reconciler.reconcile(
            initial_capital=self.config.initial_capital,
            account=self.account,
            positions=self.positions,
            trades=self.account.trades,
            price=final_price,
        )
        self.events.extend(warnings)

        logger.info(
            "Grid simulation completed",
            samples=len(series),
            trades=metrics.total_trades,
            total_return=round(metrics.total_return, 6),
            grid_profit=round(breakdown.grid_trading_profit, 2),
            holding_profit=round(breakdown.holding_profit, 2),
            rejected=len([e for e in self.events if isinstance(e, RejectedTrade)]),
        )

        return BacktestResult(
            config=self.config,
            base_price=base_price,
            levels=self.levels,
            trades=list(self.account.trades),
            equity=tracker.samples,
            events=list(self.events),
            metrics=metrics,
            profit_breakdown=breakdown,
            final_positions=[p.to_dict() for p in self.positions],
        )

    def process_tick(self, timestamp: datetime, price: float) -> None:
        """Poll every position once, lowest grid first."""
        policy = self.policy
        if policy is None:
            raise RuntimeError("initialize() must run before process_tick()")

        for position in self.positions:
            if position.is_holding:
                if position.should_sell(price, policy):
                    self._sell(position, timestamp, price, policy)
            elif position.should_buy(price, policy):
                outcome = self.executor.buy(position, price, timestamp, self.account)
                if isinstance(outcome, RejectedTrade):
                    position.disarm()
                    self.events.append(outcome)
            position.observe(price, policy)

    def _sell(
        self,
        position: GridPosition,
        timestamp: datetime,
        price: float,
        policy: TriggerPolicy,
    ) -> None:
        quantity = position.quantity
        self.executor.sell(position, price, timestamp, self.account)
        if price > policy.upper_price:
            self.events.append(
                BoundaryLiquidation(
                    timestamp=timestamp,
                    grid_index=position.grid_index,
                    price=price,
                    upper_price=policy.upper_price,
                    quantity=quantity,
                )
            )
            logger.info(
                "Boundary liquidation",
                grid=position.grid_index,
                price=price,
                upper=round(policy.upper_price, 4),
            )

    @property
    def held_quantity(self) -> float:
        return sum(p.quantity for p in self.positions)
