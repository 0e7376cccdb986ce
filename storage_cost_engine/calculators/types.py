from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List

from ..config import COST_PRECISION, DEFAULT_CURRENCY, DISPLAY_PRECISION, ESTIMATE_PERIOD_DAYS

RETAIL_DATA_SOURCE = "Azure Retail Prices API"
BILLING_DATA_SOURCE = "Azure Cost Management API"


class ConfidenceTier(str, Enum):
    """How trustworthy an estimate is, ordered from best to worst."""

    ACTUAL_BILLING = "actual_billing"
    FULL_RETAIL_MATCH = "full_retail_match"
    DEGRADED_RETAIL_MATCH = "degraded_retail_match"  # core meter found, something secondary missing
    PARTIAL_RETAIL_MATCH = "partial_retail_match"  # core meter missing, other meters priced
    NO_DATA = "no_data"

    @property
    def score(self) -> int:
        return _CONFIDENCE_SCORES[self]


_CONFIDENCE_SCORES = {
    ConfidenceTier.ACTUAL_BILLING: 95,
    ConfidenceTier.FULL_RETAIL_MATCH: 90,
    ConfidenceTier.DEGRADED_RETAIL_MATCH: 80,
    ConfidenceTier.PARTIAL_RETAIL_MATCH: 40,
    ConfidenceTier.NO_DATA: 10,
}


class EstimationMethod(str, Enum):
    PROVISIONED_PRICING = "provisioned_pricing"
    PAY_AS_YOU_GO_PRICING = "pay_as_you_go_pricing"
    SERVICE_LEVEL_PRICING = "service_level_pricing"
    ACTUAL_BILLING = "actual_billing"
    RETAIL_PRICING = "retail_pricing"
    UNSUPPORTED = "unsupported"

    @property
    def label(self) -> str:
        return _METHOD_LABELS[self]


_METHOD_LABELS = {
    EstimationMethod.PROVISIONED_PRICING: "Provisioned Pricing",
    EstimationMethod.PAY_AS_YOU_GO_PRICING: "Pay-as-you-go Pricing",
    EstimationMethod.SERVICE_LEVEL_PRICING: "Service level pricing",
    EstimationMethod.ACTUAL_BILLING: "Actual billing data",
    EstimationMethod.RETAIL_PRICING: "Retail pricing estimate",
    EstimationMethod.UNSUPPORTED: "Unsupported resource type",
}


# ---------------------------------------------------------------------
# Resource metadata (input)
# ---------------------------------------------------------------------
@dataclass
class ResourceMetadata:
    resource_id: str = ""
    name: str = ""
    region: str = ""
    redundancy: str = "LRS"
    provisioned_capacity_gb: float = 0.0
    used_capacity_gb: float = 0.0
    snapshot_size_gb: float = 0.0

    resource_type: ClassVar[str] = "Unknown"


@dataclass
class AzureFilesMetadata(ResourceMetadata):
    is_provisioned: bool = False
    tier: str = "Hot"  # Hot | Cool | TransactionOptimized
    transactions_per_month: float = 0
    egress_gb_per_month: float = 0.0

    resource_type: ClassVar[str] = "AzureFile"


@dataclass
class AnfMetadata(ResourceMetadata):
    service_level: str = "Standard"  # Standard | Premium | Ultra | Flexible
    cool_access_enabled: bool = False
    hot_data_gb: float = 0.0
    cool_data_gb: float = 0.0
    data_tiered_to_cool_gb: float = 0.0
    data_retrieved_from_cool_gb: float = 0.0

    resource_type: ClassVar[str] = "ANF"


@dataclass
class ManagedDiskMetadata(ResourceMetadata):
    disk_type: str = "Premium SSD"
    disk_size_gb: float = 0.0
    subscription_id: str = ""
    resource_group: str = ""
    transactions_per_month: float = 0
    provisioned_iops: float = 0
    provisioned_throughput_mbps: float = 0

    resource_type: ClassVar[str] = "ManagedDisk"


# ---------------------------------------------------------------------
# Estimate (output)
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class CostComponent:
    component_type: str  # storage | storage_cool | transactions | snapshots | egress | cool_tiering | ...
    quantity: float
    unit_price: float
    unit: str = ""
    description: str = ""
    data_source: str = RETAIL_DATA_SOURCE

    @property
    def estimated_cost(self) -> float:
        return round(self.quantity * self.unit_price, COST_PRECISION)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component_type": self.component_type,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "unit_price": self.unit_price,
            "estimated_cost": self.estimated_cost,
            "data_source": self.data_source,
        }


@dataclass
class CostEstimate:
    volume_id: str
    volume_name: str
    resource_type: str
    region: str = ""
    method: EstimationMethod = EstimationMethod.RETAIL_PRICING
    method_detail: str = ""
    confidence: ConfidenceTier = ConfidenceTier.NO_DATA
    currency: str = DEFAULT_CURRENCY
    period_days: int = ESTIMATE_PERIOD_DAYS
    components: List[CostComponent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def total_estimated_cost(self) -> float:
        return sum(c.estimated_cost for c in self.components)

    @property
    def display_total(self) -> float:
        return round(self.total_estimated_cost, DISPLAY_PRECISION)

    @property
    def confidence_level(self) -> int:
        return self.confidence.score

    @property
    def estimation_method(self) -> str:
        if not self.method_detail:
            return self.method.label
        return f"{self.method.label} ({self.method_detail})"

    def add_component(self, component: CostComponent) -> CostComponent:
        self.components.append(component)
        return component

    def to_dict(self) -> Dict[str, Any]:
        return {
            "volume_id": self.volume_id,
            "volume_name": self.volume_name,
            "resource_type": self.resource_type,
            "region": self.region,
            "estimation_method": self.estimation_method,
            "method": self.method.value,
            "confidence_tier": self.confidence.value,
            "confidence_level": self.confidence_level,
            "currency": self.currency,
            "period_days": self.period_days,
            "total_estimated_cost": self.display_total,
            "cost_components": [c.to_dict() for c in self.components],
            "warnings": list(self.warnings),
            "notes": list(self.notes),
        }
