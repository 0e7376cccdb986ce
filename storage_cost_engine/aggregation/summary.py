from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Sequence

from ..calculators.types import CostEstimate
from ..config import DISPLAY_PRECISION
from .forecast import CostForecast, Trend, forecast_costs

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 50


@dataclass
class ResourceTypeSubtotal:
    resource_type: str
    count: int = 0
    total_cost: float = 0.0


@dataclass
class JobCostSummary:
    """Roll-up of per-volume estimates for one job."""

    job_id: str = ""
    total_cost: float = 0.0
    resource_count: int = 0
    average_confidence: float = 0.0
    high_confidence_count: int = 0
    medium_confidence_count: int = 0
    low_confidence_count: int = 0
    warning_count: int = 0
    by_resource_type: Dict[str, ResourceTypeSubtotal] = field(default_factory=OrderedDict)
    by_component: Dict[str, float] = field(default_factory=OrderedDict)
    forecast: Optional[CostForecast] = None

    @property
    def trend(self) -> Trend:
        return self.forecast.trend if self.forecast is not None else Trend.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "job_id": self.job_id,
            "total_estimated_cost": round(self.total_cost, DISPLAY_PRECISION),
            "resource_count": self.resource_count,
            "average_confidence": round(self.average_confidence, 1),
            "high_confidence_count": self.high_confidence_count,
            "medium_confidence_count": self.medium_confidence_count,
            "low_confidence_count": self.low_confidence_count,
            "warning_count": self.warning_count,
            "by_resource_type": {
                k: {"count": v.count, "total_cost": round(v.total_cost, DISPLAY_PRECISION)}
                for k, v in self.by_resource_type.items()
            },
            "by_component": {k: round(v, DISPLAY_PRECISION) for k, v in self.by_component.items()},
            "trend": self.trend.value,
        }
        if self.forecast is not None:
            out["forecast"] = {
                "trend_description": self.forecast.trend_description,
                "forecast_period": round(self.forecast.forecast_period, DISPLAY_PRECISION),
                "low_estimate": round(self.forecast.low_estimate, DISPLAY_PRECISION),
                "high_estimate": round(self.forecast.high_estimate, DISPLAY_PRECISION),
                "confidence_pct": self.forecast.confidence_pct,
                "recent_changes": list(self.forecast.recent_changes),
                "risk_factors": list(self.forecast.risk_factors),
                "recommendations": list(self.forecast.recommendations),
            }
        return out


def aggregate(
    estimates: Iterable[CostEstimate],
    job_id: str = "",
    daily_costs: Optional[Sequence[float]] = None,
    recent_changes: Optional[Iterable[str]] = None,
) -> JobCostSummary:
    """
    Fold per-volume estimates into a job summary.

    ``daily_costs`` is the job's observed daily spend, oldest first; when
    given, the summary carries a forecast and trend. Nothing is re-priced.
    """
    summary = JobCostSummary(job_id=job_id)
    confidence_sum = 0.0

    for est in estimates:
        total = est.total_estimated_cost
        level = est.confidence_level

        summary.resource_count += 1
        summary.total_cost += total
        summary.warning_count += len(est.warnings)
        confidence_sum += level

        if level >= HIGH_CONFIDENCE:
            summary.high_confidence_count += 1
        elif level >= MEDIUM_CONFIDENCE:
            summary.medium_confidence_count += 1
        else:
            summary.low_confidence_count += 1

        sub = summary.by_resource_type.get(est.resource_type)
        if sub is None:
            sub = summary.by_resource_type[est.resource_type] = ResourceTypeSubtotal(est.resource_type)
        sub.count += 1
        sub.total_cost += total

        for c in est.components:
            summary.by_component[c.component_type] = summary.by_component.get(c.component_type, 0.0) + c.estimated_cost

    if summary.resource_count:
        summary.average_confidence = confidence_sum / summary.resource_count

    if daily_costs is not None:
        summary.forecast = forecast_costs(daily_costs, recent_changes)

    return summary
