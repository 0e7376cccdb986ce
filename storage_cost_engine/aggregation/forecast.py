"""Trend classification and 30-day forecasts from a daily cost series."""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from ..billing.actual_cost import CostEntry
from ..config import ESTIMATE_PERIOD_DAYS, TREND_DECLINE_THRESHOLD_PCT, TREND_GROWTH_THRESHOLD_PCT

_LOGGER = logging.getLogger(__name__)

# Trend is projected to the middle of the forecast window.
PROJECTION_DAYS = 15
RAPID_GROWTH_PCT = 5.0
SIGNIFICANT_CHANGE_PCT = 20.0
LOW_CONFIDENCE_PCT = 50.0


class Trend(str, Enum):
    INCREASING = "Increasing"
    DECREASING = "Decreasing"
    STABLE = "Stable"
    UNKNOWN = "Unknown"


def classify_trend(
    daily_growth_rate_pct: float,
    growth_threshold: float = TREND_GROWTH_THRESHOLD_PCT,
    decline_threshold: float = TREND_DECLINE_THRESHOLD_PCT,
) -> Trend:
    if daily_growth_rate_pct > growth_threshold:
        return Trend.INCREASING
    if daily_growth_rate_pct < decline_threshold:
        return Trend.DECREASING
    return Trend.STABLE


@dataclass
class TrendStats:
    baseline: float = 0.0
    slope: float = 0.0
    std_dev: float = 0.0
    coefficient_of_variation: float = 0.0
    daily_growth_rate_pct: float = 0.0


def analyze_trend(daily_costs: Sequence[float]) -> TrendStats:
    """Mean, population std dev and least-squares slope over day index."""
    n = len(daily_costs)
    stats = TrendStats()
    if n < 2:
        if n == 1:
            stats.baseline = float(daily_costs[0])
        return stats

    mean = sum(daily_costs) / n
    variance = sum((x - mean) ** 2 for x in daily_costs) / n
    stats.baseline = mean
    stats.std_dev = math.sqrt(variance)
    stats.coefficient_of_variation = stats.std_dev / mean if mean > 0 else 0.0

    x_sum = n * (n - 1) / 2.0
    x2_sum = (n - 1) * n * (2 * n - 1) / 6.0
    y_sum = float(sum(daily_costs))
    xy_sum = float(sum(i * y for i, y in enumerate(daily_costs)))
    denom = n * x2_sum - x_sum * x_sum
    stats.slope = (n * xy_sum - x_sum * y_sum) / denom if denom else 0.0
    stats.daily_growth_rate_pct = (stats.slope / mean) * 100.0 if mean > 0 else 0.0
    return stats


def change_multiplier(recent_changes: Iterable[str]) -> float:
    """Rough cost impact of known configuration changes."""
    multiplier = 1.0
    for change in recent_changes:
        lower = (change or "").lower()
        if "capacity" in lower and "increase" in lower:
            multiplier *= 1.15
        elif "capacity" in lower and "decrease" in lower:
            multiplier *= 0.85
        elif "premium" in lower:
            multiplier *= 1.30
        elif "standard" in lower:
            multiplier *= 0.75
        elif "backup" in lower and "enabled" in lower:
            multiplier *= 1.10
        elif "backup" in lower and "disabled" in lower:
            multiplier *= 0.90
        elif "snapshot" in lower and "enabled" in lower:
            multiplier *= 1.05
        elif "snapshot" in lower and "disabled" in lower:
            multiplier *= 0.95
    return multiplier


@dataclass
class CostForecast:
    trend: Trend = Trend.UNKNOWN
    trend_description: str = ""
    forecast_per_day: float = 0.0
    forecast_period: float = 0.0
    low_estimate: float = 0.0
    high_estimate: float = 0.0
    confidence_pct: float = 10.0
    period_days: int = ESTIMATE_PERIOD_DAYS
    stats: TrendStats = field(default_factory=TrendStats)
    percentage_change_from_historical: float = 0.0
    recent_changes: List[str] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def has_rapid_growth(self) -> bool:
        return self.stats.daily_growth_rate_pct > RAPID_GROWTH_PCT

    @property
    def has_low_confidence(self) -> bool:
        return self.confidence_pct < LOW_CONFIDENCE_PCT

    @property
    def confidence_label(self) -> str:
        if self.confidence_pct >= 80:
            return "High"
        if self.confidence_pct >= 50:
            return "Medium"
        return "Low"


def _confidence(stats: TrendStats, recent_changes: List[str]) -> float:
    confidence = 75.0
    if stats.coefficient_of_variation > 0.5:
        confidence -= 25
    elif stats.coefficient_of_variation > 0.3:
        confidence -= 15
    if recent_changes:
        confidence -= 5 * min(len(recent_changes), 3)
    if abs(stats.daily_growth_rate_pct) < 0.5:
        confidence += 10
    return max(10.0, min(95.0, confidence))


def forecast_costs(
    daily_costs: Sequence[float],
    recent_changes: Optional[Iterable[str]] = None,
    historical_daily_average: Optional[float] = None,
    period_days: int = ESTIMATE_PERIOD_DAYS,
) -> CostForecast:
    """
    Forecast the next ``period_days`` of spend from a chronological daily series.

    With fewer than two points there is no trend to fit: the forecast repeats
    the last known day and reports Trend.UNKNOWN at minimum confidence.
    """
    changes = [c for c in (recent_changes or []) if c]
    costs = [max(0.0, float(c)) for c in daily_costs]
    forecast = CostForecast(period_days=period_days, recent_changes=list(changes))

    if len(costs) < 2:
        last = costs[-1] if costs else 0.0
        forecast.stats = analyze_trend(costs)
        forecast.forecast_per_day = last
        forecast.forecast_period = forecast.low_estimate = forecast.high_estimate = last * period_days
        forecast.trend_description = "Not enough history to determine a trend"
        _LOGGER.debug("Forecast skipped trend analysis: %s data point(s)", len(costs))
        _recommend(forecast)
        return forecast

    stats = analyze_trend(costs)
    forecast.stats = stats
    forecast.trend = classify_trend(stats.daily_growth_rate_pct)
    if forecast.trend is Trend.INCREASING:
        forecast.trend_description = f"Cost growing at {stats.daily_growth_rate_pct:.2f}% per day"
    elif forecast.trend is Trend.DECREASING:
        forecast.trend_description = f"Cost declining at {abs(stats.daily_growth_rate_pct):.2f}% per day"
    else:
        forecast.trend_description = "Cost is stable with minimal variance"

    per_day = (stats.baseline + stats.slope * PROJECTION_DAYS) * change_multiplier(changes)
    per_day = max(per_day, 0.0)
    forecast.forecast_per_day = per_day
    forecast.forecast_period = per_day * period_days
    forecast.low_estimate = max(per_day - stats.std_dev, 0.0) * period_days
    forecast.high_estimate = (per_day + stats.std_dev) * period_days
    forecast.confidence_pct = _confidence(stats, changes)

    historical = stats.baseline if historical_daily_average is None else historical_daily_average
    if historical > 0:
        forecast.percentage_change_from_historical = (per_day - historical) / historical * 100.0

    if forecast.has_rapid_growth:
        forecast.risk_factors.append(f"Rapid cost growth at {stats.daily_growth_rate_pct:.1f}% per day")
    if stats.coefficient_of_variation > 0.5:
        forecast.risk_factors.append("High variability in daily costs may affect forecast accuracy")
    if forecast.has_low_confidence:
        forecast.risk_factors.append("Low forecast confidence due to volatile historical data")

    _detect_changes(forecast)
    _recommend(forecast)
    return forecast


def _detect_changes(forecast: CostForecast) -> None:
    change = forecast.percentage_change_from_historical
    if change > SIGNIFICANT_CHANGE_PCT:
        forecast.recent_changes.append("Significant cost increase detected")
    elif change < -SIGNIFICANT_CHANGE_PCT:
        forecast.recent_changes.append("Significant cost decrease detected")


def _recommend(forecast: CostForecast) -> None:
    if forecast.has_rapid_growth:
        forecast.recommendations.append(
            f"Investigate cause of {forecast.stats.daily_growth_rate_pct:.1f}% daily cost growth"
        )
        forecast.recommendations.append("Consider implementing retention policies to reduce data growth")
    if forecast.has_low_confidence:
        forecast.recommendations.append(
            "Forecast confidence is low; check again after 7 days when more stable data is available"
        )


def daily_costs_from_entries(entries: Iterable[CostEntry]) -> List[float]:
    """Sum billing entries per usage date, oldest first. Undated entries are ignored."""
    per_day: Dict[date, float] = defaultdict(float)
    for e in entries:
        if e.usage_date is None:
            continue
        per_day[e.usage_date] += float(e.cost or 0.0)
    return [per_day[d] for d in sorted(per_day)]
