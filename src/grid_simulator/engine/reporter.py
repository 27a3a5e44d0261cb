"""
GridBacktestReporter — Report generation and preset export.

Generates:
- Summary reports across several backtest results
- JSON/YAML preset export compatible with GridSettings
- Trade and equity tables as pandas DataFrames
"""

import json
from typing import Any

import pandas as pd
import yaml

from grid_simulator.engine.models import BacktestResult
from grid_simulator.logging import get_logger

logger = get_logger(__name__)

TRADE_COLUMNS = [
    "side", "timestamp", "price", "quantity", "notional", "margin", "fee",
    "grid_index", "balance", "profit", "profit_pct", "holding_seconds",
]
EQUITY_COLUMNS = ["timestamp", "price", "total_value", "free_balance", "unrealized_pnl"]


class GridBacktestReporter:
    """Generates reports and exports presets from backtest results."""

    def generate_summary(
        self,
        results: list[BacktestResult],
        top_n: int = 5,
    ) -> dict[str, Any]:
        """Generate summary report from multiple backtest results."""
        if not results:
            return {"results": [], "count": 0}

        by_return = sorted(results, key=lambda r: r.metrics.total_return, reverse=True)
        by_sharpe = sorted(results, key=lambda r: r.metrics.sharpe_ratio, reverse=True)
        by_drawdown = sorted(results, key=lambda r: r.metrics.max_drawdown)

        logger.info("Summary report generated", count=len(results))

        return {
            "count": len(results),
            "top_by_return": [r.to_dict() for r in by_return[:top_n]],
            "top_by_sharpe": [r.to_dict() for r in by_sharpe[:top_n]],
            "lowest_drawdown": [r.to_dict() for r in by_drawdown[:top_n]],
            "avg_return": sum(r.metrics.total_return for r in results) / len(results),
            "avg_sharpe": sum(r.metrics.sharpe_ratio for r in results) / len(results),
            "avg_drawdown": sum(r.metrics.max_drawdown for r in results) / len(results),
        }

    def trades_frame(self, result: BacktestResult) -> pd.DataFrame:
        return pd.DataFrame([t.to_dict() for t in result.trades], columns=TRADE_COLUMNS)

    def equity_frame(self, result: BacktestResult) -> pd.DataFrame:
        return pd.DataFrame([e.to_dict() for e in result.equity], columns=EQUITY_COLUMNS)

    def export_preset_json(self, result: BacktestResult) -> str:
        """Export the run's config as a JSON preset."""
        return json.dumps(self._build_preset_dict(result), indent=2)

    def export_preset_yaml(self, result: BacktestResult) -> str:
        """Export the run's config as a YAML preset loadable by GridSettings."""
        return yaml.safe_dump(self._build_preset_dict(result), default_flow_style=False, sort_keys=False)

    def _build_preset_dict(self, result: BacktestResult) -> dict[str, Any]:
        config = result.config
        preset: dict[str, Any] = {
            "volatility_mode": "custom",
            "initial_capital": config.initial_capital,
            "lower_bound_pct": config.lower_bound_pct,
            "upper_bound_pct": config.upper_bound_pct,
            "grid_count": config.grid_count,
            "grid_spacing": config.spacing.value,
            "leverage": config.leverage,
            "fee_rate": config.fee_rate,
            "buy_tolerance_pct": config.buy_tolerance_pct,
            "sell_tolerance_pct": config.sell_tolerance_pct,
            "take_profit_steps": config.take_profit_steps,
        }

        metrics = result.metrics
        preset["_backtest_metrics"] = {
            "total_return": round(metrics.total_return, 6),
            "annualized_return": round(metrics.annualized_return, 6),
            "sharpe_ratio": round(metrics.sharpe_ratio, 4),
            "max_drawdown": round(metrics.max_drawdown, 6),
            "sell_trades": metrics.sell_trades,
            "win_rate": round(metrics.win_rate, 4),
        }
        return preset
