from __future__ import annotations

import logging
import math
from typing import Any, List, Optional, Protocol

from ..pricing.items import PriceItem
from ..pricing.lookup import PricingLookup
from .types import ConfidenceTier, CostComponent, CostEstimate, EstimationMethod, ResourceMetadata

_LOGGER = logging.getLogger(__name__)

NO_PRICING_WARNING = "No pricing data available"


class CostCalculator(Protocol):
    """Turns one resource's metadata into a CostEstimate. Never raises."""

    resource_type: str

    def calculate(self, metadata: ResourceMetadata) -> CostEstimate: ...


def as_quantity(value: Any) -> float:
    """Unset, invalid, negative or non-finite numbers count as zero."""
    try:
        f = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(f) or math.isinf(f) or f < 0:
        return 0.0
    return f


def transaction_units(transactions: Any) -> float:
    """Billable 10K-transaction units, rounded up."""
    return float(math.ceil(as_quantity(transactions) / 10_000.0))


class BaseCostCalculator:
    """Shared plumbing: estimate scaffolding, guarded price lookups, logging."""

    resource_type: str = "Unknown"

    def __init__(self, pricing: PricingLookup):
        self.pricing = pricing

    # Subclasses fill the estimate in place.
    def _populate(self, metadata: Any, estimate: CostEstimate) -> None:
        raise NotImplementedError

    def _initial_method(self, metadata: Any) -> EstimationMethod:
        return EstimationMethod.RETAIL_PRICING

    def calculate(self, metadata: ResourceMetadata) -> CostEstimate:
        estimate = CostEstimate(
            volume_id=metadata.resource_id,
            volume_name=metadata.name,
            resource_type=self.resource_type,
            region=metadata.region,
            method=self._initial_method(metadata),
        )
        try:
            self._populate(metadata, estimate)
        except Exception as ex:
            _LOGGER.exception("Failed to calculate cost for %s", metadata.name or metadata.resource_id)
            estimate.warnings.append(f"Cost calculation failed: {ex}")
            estimate.confidence = ConfidenceTier.NO_DATA

        _LOGGER.info(
            "Calculated %s-day estimate for %s: %.2f (%s, %s%% confidence)",
            estimate.period_days,
            estimate.volume_name,
            estimate.total_estimated_cost,
            estimate.estimation_method,
            estimate.confidence_level,
        )
        return estimate

    def _prices(
        self,
        estimate: CostEstimate,
        region: str,
        resource_type: str,
        sku: Optional[str] = None,
        redundancy: Optional[str] = None,
    ) -> List[PriceItem]:
        """Price lookup that reports failures as an empty list plus a warning."""
        try:
            items = self.pricing.get_pricing(region, resource_type, sku, redundancy)
        except Exception as ex:
            _LOGGER.warning("Pricing lookup failed for %s (%s, %s): %s", estimate.volume_name, resource_type, region, ex)
            estimate.warnings.append(f"Pricing lookup failed: {ex}")
            return []
        return list(items or [])

    @staticmethod
    def _component(
        component_type: str,
        quantity: float,
        price: PriceItem,
        description: str,
        unit: Optional[str] = None,
        unit_price: Optional[float] = None,
    ) -> CostComponent:
        return CostComponent(
            component_type=component_type,
            quantity=quantity,
            unit_price=price.unit_price if unit_price is None else unit_price,
            unit=price.unit_of_measure if unit is None else unit,
            description=description,
        )

    @staticmethod
    def _ensure_no_data_warning(estimate: CostEstimate, detail: str) -> None:
        if not any("no pricing data" in w.lower() for w in estimate.warnings):
            estimate.warnings.append(f"{NO_PRICING_WARNING} {detail}".strip())
