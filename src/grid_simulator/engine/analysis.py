"""
BacktestAnalyzer — Post-run assessment of a grid backtest.

Produces:
- Price analysis (volatility, trend, buy-and-hold return)
- Strategy summary (performance / risk categories, suitability)
- Prioritized tuning suggestions
- Weighted risk assessment
- Parameter hints for grid count, band, leverage and spacing
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from grid_simulator.core.calculator import GridSpacing
from grid_simulator.engine.data import PriceInput, load_price_series
from grid_simulator.engine.models import BacktestResult, Metrics
from grid_simulator.logging import get_logger

logger = get_logger(__name__)

TREND_MIN_SAMPLES = 10
TREND_THRESHOLD = 0.05


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class PriceAnalysis:
    """Descriptive statistics of the replayed close series."""

    start_price: float
    end_price: float
    min_price: float
    max_price: float
    volatility: float  # annualized, sample stdev of close-to-close returns
    trend: Trend
    total_return: float
    data_points: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_price": self.start_price,
            "end_price": self.end_price,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "volatility": round(self.volatility, 6),
            "trend": self.trend.value,
            "total_return": round(self.total_return, 6),
            "data_points": self.data_points,
        }


def analyze_prices(candles: PriceInput) -> PriceAnalysis:
    """Summarize a price series. Needs at least two samples."""
    closes = np.array([close for _, close in load_price_series(candles)], dtype=float)
    if len(closes) < 2:
        raise ValueError("Need at least 2 prices for analysis")

    returns = np.diff(closes) / closes[:-1]
    volatility = float(np.std(returns, ddof=1) * np.sqrt(365)) if len(returns) >= 2 else 0.0

    return PriceAnalysis(
        start_price=float(closes[0]),
        end_price=float(closes[-1]),
        min_price=float(closes.min()),
        max_price=float(closes.max()),
        volatility=volatility,
        trend=_trend(closes),
        total_return=float((closes[-1] - closes[0]) / closes[0]),
        data_points=len(closes),
    )


def _trend(closes: np.ndarray) -> Trend:
    if len(closes) < TREND_MIN_SAMPLES:
        return Trend.NEUTRAL
    half = len(closes) // 2
    first_avg = float(closes[:half].mean())
    second_avg = float(closes[half:].mean())
    change = (second_avg - first_avg) / first_avg
    if change > TREND_THRESHOLD:
        return Trend.BULLISH
    if change < -TREND_THRESHOLD:
        return Trend.BEARISH
    return Trend.NEUTRAL


class BacktestAnalyzer:
    """Turns metrics and price statistics into a readable assessment."""

    # Risk score weights
    DRAWDOWN_WEIGHT = 0.4
    VOLATILITY_WEIGHT = 0.3
    LEVERAGE_WEIGHT = 0.2
    CONCENTRATION_WEIGHT = 0.1

    # Single-asset strategy: concentration is always high
    CONCENTRATION_RISK = 0.7
    MAX_LEVERAGE_SCALE = 20.0

    def analyze(self, result: BacktestResult, candles: PriceInput) -> dict[str, Any]:
        """Full analysis report for one result."""
        prices = analyze_prices(candles)
        metrics = result.metrics

        report = {
            "price_analysis": prices.to_dict(),
            "summary": self.summary(metrics, prices),
            "suggestions": self.suggestions(metrics, prices),
            "risk_assessment": self.risk_assessment(metrics, prices, result.config.leverage),
            "optimization": self.optimization(metrics, result),
        }

        logger.info(
            "Backtest analyzed",
            performance=report["summary"]["performance"],
            risk_level=report["summary"]["risk_level"],
            suggestions=len(report["suggestions"]),
        )
        return report

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def summary(self, metrics: Metrics, prices: PriceAnalysis) -> dict[str, Any]:
        return {
            "performance": self.categorize_performance(metrics.total_return),
            "risk_level": self.categorize_risk(metrics.max_drawdown),
            "total_profit": metrics.total_profit,
            "total_return": metrics.total_return,
            "win_rate": metrics.win_rate,
            "trading_frequency": self.trading_frequency(metrics),
            "market_condition": prices.trend.value,
            "suitability": self.assess_suitability(metrics),
        }

    @staticmethod
    def categorize_performance(total_return: float) -> str:
        if total_return > 0.2:
            return "excellent"
        if total_return > 0.1:
            return "good"
        if total_return > 0.05:
            return "fair"
        if total_return > 0:
            return "poor"
        return "loss"

    @staticmethod
    def categorize_risk(risk: float) -> str:
        if risk < 0.05:
            return "low"
        if risk < 0.1:
            return "medium"
        if risk < 0.2:
            return "high"
        return "very_high"

    @staticmethod
    def trading_frequency(metrics: Metrics) -> str:
        days = metrics.elapsed_days if metrics.elapsed_days > 0 else 1.0
        per_day = metrics.total_trades / days
        if per_day > 2:
            return "high"
        if per_day > 0.5:
            return "medium"
        return "low"

    @staticmethod
    def assess_suitability(metrics: Metrics) -> str:
        good_return = metrics.total_return > 0.05
        controlled_risk = metrics.max_drawdown < 0.15
        good_win_rate = metrics.win_rate > 0.6

        if good_return and controlled_risk and good_win_rate:
            return "highly_suitable"
        if good_return and (controlled_risk or good_win_rate):
            return "suitable"
        if controlled_risk:
            return "moderately_suitable"
        return "not_suitable"

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    def suggestions(self, metrics: Metrics, prices: PriceAnalysis) -> list[dict[str, str]]:
        out: list[dict[str, str]] = []

        if metrics.total_return < 0.05:
            out.append(_suggestion(
                "performance", "high",
                "Return is low; consider more grid levels or a wider price band.",
            ))
        if metrics.max_drawdown > 0.15:
            out.append(_suggestion(
                "risk", "high",
                "Drawdown is high; lower the leverage or narrow the price band.",
            ))
        if metrics.sell_trades < 5:
            out.append(_suggestion(
                "activity", "medium",
                "Few completed round trips; add levels or move the band closer to price.",
            ))
        if metrics.win_rate < 0.6:
            out.append(_suggestion(
                "strategy", "medium",
                "Win rate is low; try geometric spacing or a different grid step.",
            ))
        if prices.trend == Trend.BEARISH:
            out.append(_suggestion(
                "market", "medium",
                "Market is trending down; lower the upper bound or hold less exposure.",
            ))
        return out

    # -------------------------------------------------------------------------
    # Risk
    # -------------------------------------------------------------------------

    def risk_score(self, metrics: Metrics, prices: PriceAnalysis, leverage: float) -> float:
        """Weighted score in [0, 1]."""
        drawdown_score = min(metrics.max_drawdown / 0.3, 1.0)
        volatility_score = min(prices.volatility / 2, 1.0)
        leverage_score = min((leverage - 1) / (self.MAX_LEVERAGE_SCALE - 1), 1.0)
        return (
            self.DRAWDOWN_WEIGHT * drawdown_score
            + self.VOLATILITY_WEIGHT * volatility_score
            + self.LEVERAGE_WEIGHT * leverage_score
            + self.CONCENTRATION_WEIGHT * self.CONCENTRATION_RISK
        )

    def risk_assessment(
        self, metrics: Metrics, prices: PriceAnalysis, leverage: float
    ) -> dict[str, Any]:
        score = self.risk_score(metrics, prices, leverage)
        return {
            "overall_risk": self.categorize_risk(score),
            "risk_score": round(score, 4),
            "factors": {
                "drawdown_risk": metrics.max_drawdown,
                "volatility_risk": prices.volatility,
                "leverage_risk": leverage / self.MAX_LEVERAGE_SCALE,
                "concentration_risk": self.CONCENTRATION_RISK,
            },
            "recommendations": self.risk_recommendations(score),
        }

    @staticmethod
    def risk_recommendations(score: float) -> list[str]:
        if score > 0.7:
            return [
                "Reduce leverage to 1-2x",
                "Narrow the price band to within +/-5%",
                "Build the position in stages",
            ]
        if score > 0.5:
            return [
                "Reduce leverage somewhat",
                "Watch drawdown and set a stop",
                "Revisit grid parameters regularly",
            ]
        return [
            "Risk level is acceptable",
            "Keep monitoring market conditions",
            "Consider tuning parameters for more return",
        ]

    # -------------------------------------------------------------------------
    # Parameter hints
    # -------------------------------------------------------------------------

    def optimization(self, metrics: Metrics, result: BacktestResult) -> dict[str, Any]:
        config = result.config

        grid_count, grid_reason = config.grid_count, "grid count looks reasonable"
        if metrics.sell_trades < 3:
            grid_count, grid_reason = min(config.grid_count + 20, 200), "too few trades; add levels"
        elif metrics.sell_trades > 50 and metrics.win_rate < 0.5:
            grid_count, grid_reason = max(config.grid_count - 10, 20), "overtrading with low win rate; remove levels"
        elif metrics.win_rate > 0.8 and metrics.total_return > 0.1:
            grid_count, grid_reason = min(config.grid_count + 30, 300), "strong results; more levels may add return"

        lower, upper, band_reason = config.lower_bound_pct, config.upper_bound_pct, "band looks reasonable"
        if metrics.max_drawdown > 0.2:
            lower = max(config.lower_bound_pct + 2, -8)
            upper = min(config.upper_bound_pct - 2, 8)
            band_reason = "large drawdown; narrow the band"
        elif metrics.sell_trades < 5:
            lower = min(config.lower_bound_pct - 3, -15)
            upper = max(config.upper_bound_pct + 3, 15)
            band_reason = "few trade opportunities; widen the band"

        leverage, leverage_reason = config.leverage, "leverage looks reasonable"
        if metrics.max_drawdown > 0.15:
            leverage, leverage_reason = max(config.leverage - 0.5, 1.0), "high risk; reduce leverage"
        elif metrics.total_return > 0.15 and metrics.max_drawdown < 0.05:
            leverage, leverage_reason = min(config.leverage + 0.5, 5.0), "good return with low risk; leverage can rise"

        spacing, spacing_reason = config.spacing, "spacing suits the run"
        if config.spacing == GridSpacing.ARITHMETIC and metrics.win_rate < 0.5:
            spacing, spacing_reason = GridSpacing.GEOMETRIC, "low win rate on arithmetic grid; try geometric"

        return {
            "grid_count": {"current": config.grid_count, "recommended": grid_count, "reason": grid_reason},
            "price_range": {
                "current": {"lower": config.lower_bound_pct, "upper": config.upper_bound_pct},
                "recommended": {"lower": lower, "upper": upper},
                "reason": band_reason,
            },
            "leverage": {"current": config.leverage, "recommended": leverage, "reason": leverage_reason},
            "grid_spacing": {
                "current": config.spacing.value,
                "recommended": spacing.value,
                "reason": spacing_reason,
            },
        }


def _suggestion(kind: str, priority: str, content: str) -> dict[str, str]:
    return {"type": kind, "priority": priority, "content": content}
