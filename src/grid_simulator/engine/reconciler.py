"""
ProfitReconciler — splits total profit into grid and holding profit.

    grid trading profit = sum of realized sell profits
    holding profit      = sum over open positions of
                          (quantity * price - borrowed) - (margin + buy_fee)
    total profit        = account value - initial capital

Holding profit is measured against the margin actually committed, not the
notional: the borrowed part of the cost basis, cost_basis * (L - 1) / L,
belongs to the lender. With this accounting the two components add up to
the total by construction, so any residual above one cent is a bug. It is
reported (or raised in strict mode) and never folded into either bucket.
"""

from grid_simulator.core.events import ReconciliationWarning
from grid_simulator.core.executor import Account, Trade, TradeSide
from grid_simulator.core.position import GridPosition, HoldingAsset
from grid_simulator.engine.models import (
    PROFIT_TOLERANCE,
    ProfitBreakdown,
    ProfitVerification,
)
from grid_simulator.errors import ReconciliationMismatch
from grid_simulator.logging import get_logger

logger = get_logger(__name__)


class ProfitReconciler:
    """Builds the ProfitBreakdown and checks that it adds up."""

    def __init__(self, tolerance: float = PROFIT_TOLERANCE, strict: bool = False) -> None:
        self.tolerance = tolerance
        self.strict = strict

    def reconcile(
        self,
        initial_capital: float,
        account: Account,
        positions: list[GridPosition],
        trades: list[Trade],
        price: float,
    ) -> tuple[ProfitBreakdown, list[ReconciliationWarning]]:
        """
        Returns the breakdown plus any warning events.

        Raises:
            ReconciliationMismatch: in strict mode, when the residual exceeds
                the tolerance.
        """
        sells = [t for t in trades if t.side == TradeSide.SELL]
        grid_profit = sum(t.profit or 0.0 for t in sells)

        holdings = [p.state for p in positions if isinstance(p.state, HoldingAsset)]
        holding_profit = sum(h.unrealized_pnl(price) for h in holdings)
        position_cost = sum(h.cost_basis for h in holdings)

        current_value = account.free_balance + sum(h.equity(price) for h in holdings)
        total_profit = current_value - initial_capital

        components_sum = grid_profit + holding_profit
        verification = ProfitVerification(
            components_sum=components_sum,
            total_profit=total_profit,
            residual=total_profit - components_sum,
            tolerance=self.tolerance,
        )

        breakdown = ProfitBreakdown(
            grid_trading_profit=grid_profit,
            holding_profit=holding_profit,
            total_profit=total_profit,
            grid_trading_profit_pct=_pct(grid_profit, initial_capital),
            holding_profit_pct=_pct(holding_profit, position_cost),
            total_profit_pct=_pct(total_profit, initial_capital),
            initial_value=initial_capital,
            current_value=current_value,
            free_balance=account.free_balance,
            current_price=price,
            position_cost=position_cost,
            grid_trade_count=len(sells),
            active_positions=len(holdings),
            verification=verification,
        )

        warnings: list[ReconciliationWarning] = []
        if not verification.is_valid:
            logger.error(
                "Profit breakdown does not reconcile",
                total_profit=total_profit,
                components_sum=components_sum,
                residual=verification.residual,
            )
            if self.strict:
                raise ReconciliationMismatch(total_profit, components_sum, self.tolerance)
            warnings.append(
                ReconciliationWarning(
                    total_profit=total_profit,
                    components_sum=components_sum,
                    residual=verification.residual,
                    tolerance=self.tolerance,
                )
            )

        return breakdown, warnings


def _pct(value: float, base: float) -> float:
    return value / base * 100 if base > 0 else 0.0
