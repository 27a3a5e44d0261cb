"""
GridBacktestSystem — caller-side entry point for grid backtests.

Orchestrates:
1. Settings conversion (GridSettings -> GridConfig)
2. Data sufficiency check
3. A fresh GridSimulation per run
4. Post-run analysis (BacktestAnalyzer)
"""

import time
import uuid
from typing import Any

from grid_simulator.core.config import GridConfig, GridSettings
from grid_simulator.engine.analysis import BacktestAnalyzer
from grid_simulator.engine.data import PriceInput, to_frame
from grid_simulator.engine.models import BacktestResult
from grid_simulator.engine.reporter import GridBacktestReporter
from grid_simulator.engine.simulator import GridSimulation
from grid_simulator.errors import DataError
from grid_simulator.logging import get_logger, log_context

logger = get_logger(__name__)

MIN_CANDLES = 10


class GridBacktestSystem:
    """End-to-end grid backtest runner."""

    def __init__(
        self,
        min_candles: int = MIN_CANDLES,
        analyzer: BacktestAnalyzer | None = None,
    ) -> None:
        self.min_candles = min_candles
        self.analyzer = analyzer or BacktestAnalyzer()
        self.reporter = GridBacktestReporter()

    def check_data(self, candles: PriceInput) -> None:
        """Reject price data too short to backtest."""
        count = len(to_frame(candles))
        if count < self.min_candles:
            raise DataError(
                f"insufficient price data: {count} candles, need at least {self.min_candles}"
            )

    def run_backtest(
        self,
        settings: GridSettings | GridConfig,
        candles: PriceInput,
        analyze: bool = True,
    ) -> BacktestResult:
        """Validate inputs, run one simulation and attach the analysis."""
        if isinstance(settings, GridSettings):
            config = settings.to_config()
            strict = settings.strict_reconciliation
            symbol = settings.symbol
        else:
            config = settings
            strict = False
            symbol = None

        self.check_data(candles)

        run_id = uuid.uuid4().hex[:12]
        with log_context(run_id=run_id, symbol=symbol):
            logger.info("Running backtest", grid_count=config.grid_count, leverage=config.leverage)
            start_time = time.perf_counter()

            result = GridSimulation(config, strict_reconciliation=strict).run(candles)
            if analyze:
                result.analysis = self.analyzer.analyze(result, candles)

            result.duration_seconds = time.perf_counter() - start_time
            logger.info(
                "Backtest finished",
                total_return=round(result.metrics.total_return, 6),
                duration_s=round(result.duration_seconds, 4),
            )
        return result

    def run_many(
        self,
        configs: list[GridSettings | GridConfig],
        candles: PriceInput,
        top_n: int = 5,
    ) -> dict[str, Any]:
        """Run several configurations on the same prices and summarize them."""
        results = [self.run_backtest(c, candles, analyze=False) for c in configs]
        return self.reporter.generate_summary(results, top_n=top_n)
