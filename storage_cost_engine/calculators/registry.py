from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..billing.actual_cost import ActualCostLookup
from ..pricing.lookup import PricingLookup, RetailPricingLookup
from .anf import AnfCostCalculator
from .azure_files import AzureFilesCostCalculator
from .base import CostCalculator
from .managed_disk import ManagedDiskCostCalculator
from .types import ConfidenceTier, CostEstimate, EstimationMethod, ResourceMetadata

_LOGGER = logging.getLogger(__name__)


@dataclass
class CalculatorRegistry:
    """Lookup table for calculators by resource type tag."""

    calculators: Dict[str, CostCalculator] = field(default_factory=dict)

    def register(self, resource_type: str, calculator: CostCalculator) -> None:
        self.calculators[resource_type.lower()] = calculator

    def get(self, resource_type: str) -> Optional[CostCalculator]:
        return self.calculators.get((resource_type or "").lower())

    def estimate(self, metadata: ResourceMetadata) -> CostEstimate:
        calculator = self.get(metadata.resource_type)
        if calculator is None:
            _LOGGER.warning("No calculator for resource type %s (%s)", metadata.resource_type, metadata.name)
            return CostEstimate(
                volume_id=metadata.resource_id,
                volume_name=metadata.name,
                resource_type=metadata.resource_type,
                region=metadata.region,
                method=EstimationMethod.UNSUPPORTED,
                confidence=ConfidenceTier.NO_DATA,
                warnings=[f"Unknown resource type: {metadata.resource_type}"],
            )
        return calculator.calculate(metadata)

    def estimate_many(self, resources: Iterable[ResourceMetadata]) -> List[CostEstimate]:
        return [self.estimate(r) for r in resources]


def build_default_registry(
    pricing: Optional[PricingLookup] = None,
    actual_costs: Optional[ActualCostLookup] = None,
) -> CalculatorRegistry:
    pricing = pricing if pricing is not None else RetailPricingLookup()

    reg = CalculatorRegistry()
    reg.register(AzureFilesCostCalculator.resource_type, AzureFilesCostCalculator(pricing))
    reg.register(AnfCostCalculator.resource_type, AnfCostCalculator(pricing))
    reg.register(ManagedDiskCostCalculator.resource_type, ManagedDiskCostCalculator(pricing, actual_costs))
    return reg
