from .forecast import (
    CostForecast,
    Trend,
    TrendStats,
    analyze_trend,
    classify_trend,
    daily_costs_from_entries,
    forecast_costs,
)
from .summary import JobCostSummary, ResourceTypeSubtotal, aggregate

__all__ = [
    "CostForecast",
    "JobCostSummary",
    "ResourceTypeSubtotal",
    "Trend",
    "TrendStats",
    "aggregate",
    "analyze_trend",
    "classify_trend",
    "daily_costs_from_entries",
    "forecast_costs",
]
