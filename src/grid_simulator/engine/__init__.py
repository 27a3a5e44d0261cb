"""Grid simulation engine — simulation loop, equity, metrics, reconciliation, reports."""

from grid_simulator.engine.models import (
    BacktestResult,
    Candle,
    EquitySample,
    Metrics,
    ProfitBreakdown,
    ProfitVerification,
    PROFIT_TOLERANCE,
)
from grid_simulator.engine.data import load_price_series
from grid_simulator.engine.equity import EquityTracker
from grid_simulator.engine.metrics import MetricsCalculator
from grid_simulator.engine.reconciler import ProfitReconciler
from grid_simulator.engine.simulator import GridSimulation
from grid_simulator.engine.analysis import BacktestAnalyzer, PriceAnalysis, Trend, analyze_prices
from grid_simulator.engine.reporter import GridBacktestReporter
from grid_simulator.engine.system import GridBacktestSystem, MIN_CANDLES

__all__ = [
    "BacktestResult",
    "Candle",
    "EquitySample",
    "Metrics",
    "ProfitBreakdown",
    "ProfitVerification",
    "PROFIT_TOLERANCE",
    "load_price_series",
    "EquityTracker",
    "MetricsCalculator",
    "ProfitReconciler",
    "GridSimulation",
    "BacktestAnalyzer",
    "PriceAnalysis",
    "Trend",
    "analyze_prices",
    "GridBacktestReporter",
    "GridBacktestSystem",
    "MIN_CANDLES",
]
