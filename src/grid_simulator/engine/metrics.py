"""MetricsCalculator — performance metrics over the equity and trade logs."""

import math

from grid_simulator.core.executor import Trade, TradeSide
from grid_simulator.engine.models import EquitySample, Metrics

DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400.0


class MetricsCalculator:
    """Pure functions; nothing here touches simulation state."""

    @staticmethod
    def calculate(
        equity: list[EquitySample],
        trades: list[Trade],
        initial_capital: float,
    ) -> Metrics:
        """Compute all run metrics. Returns are measured against initial_capital."""
        if not equity:
            return Metrics(initial_value=initial_capital, final_value=initial_capital)

        final_value = equity[-1].total_value
        total_profit = final_value - initial_capital
        total_return = total_profit / initial_capital if initial_capital > 0 else 0.0

        elapsed_days = MetricsCalculator.elapsed_days(equity)
        annualized = MetricsCalculator.annualized_return(total_return, elapsed_days)

        buys = [t for t in trades if t.side == TradeSide.BUY]
        sells = [t for t in trades if t.side == TradeSide.SELL]
        profitable = [t for t in sells if (t.profit or 0.0) > 0]

        if sells:
            win_rate = len(profitable) / len(sells)
            avg_profit = sum(t.profit or 0.0 for t in sells) / len(sells)
            avg_holding_hours = sum(
                t.holding_duration.total_seconds() for t in sells if t.holding_duration
            ) / len(sells) / 3600
        else:
            win_rate = 0.0
            avg_profit = 0.0
            avg_holding_hours = 0.0

        return Metrics(
            initial_value=initial_capital,
            final_value=final_value,
            total_profit=total_profit,
            total_return=total_return,
            annualized_return=annualized,
            total_trades=len(trades),
            buy_trades=len(buys),
            sell_trades=len(sells),
            profitable_trades=len(profitable),
            win_rate=win_rate,
            max_drawdown=MetricsCalculator.max_drawdown(equity),
            sharpe_ratio=MetricsCalculator.sharpe_ratio(equity),
            avg_holding_hours=avg_holding_hours,
            avg_profit=avg_profit,
            total_fees=sum(t.fee for t in trades),
            elapsed_days=elapsed_days,
        )

    @staticmethod
    def elapsed_days(equity: list[EquitySample]) -> float:
        if len(equity) < 2:
            return 0.0
        return (equity[-1].timestamp - equity[0].timestamp).total_seconds() / SECONDS_PER_DAY

    @staticmethod
    def annualized_return(total_return: float, elapsed_days: float) -> float:
        """Linear annualization: total_return * 365 / days."""
        if elapsed_days <= 0 or not math.isfinite(total_return):
            return 0.0
        annualized = total_return * (DAYS_PER_YEAR / elapsed_days)
        return annualized if math.isfinite(annualized) else 0.0

    @staticmethod
    def max_drawdown(equity: list[EquitySample]) -> float:
        """Largest peak-to-trough decline as a fraction of the running peak."""
        if not equity:
            return 0.0
        peak = equity[0].total_value
        max_dd = 0.0
        for sample in equity:
            if sample.total_value > peak:
                peak = sample.total_value
            if peak > 0:
                max_dd = max(max_dd, (peak - sample.total_value) / peak)
        return max_dd

    @staticmethod
    def sample_returns(equity: list[EquitySample]) -> list[float]:
        returns = []
        for prev, cur in zip(equity, equity[1:]):
            if prev.total_value > 0:
                returns.append((cur.total_value - prev.total_value) / prev.total_value)
        return returns

    @staticmethod
    def sharpe_ratio(equity: list[EquitySample]) -> float:
        """Mean over population stdev of per-sample returns, times sqrt(365)."""
        returns = MetricsCalculator.sample_returns(equity)
        if len(returns) < 2:
            return 0.0
        mean_ret = sum(returns) / len(returns)
        variance = sum((r - mean_ret) ** 2 for r in returns) / len(returns)
        std_ret = math.sqrt(variance) if variance > 0 else 0.0
        if std_ret == 0:
            return 0.0
        return (mean_ret / std_ret) * math.sqrt(DAYS_PER_YEAR)
