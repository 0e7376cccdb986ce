"""Cost estimation for Azure Files shares, ANF volumes and Managed Disks."""

from .aggregation import JobCostSummary, aggregate, forecast_costs
from .calculators import (
    AnfCostCalculator,
    AnfMetadata,
    AzureFilesCostCalculator,
    AzureFilesMetadata,
    ConfidenceTier,
    CostComponent,
    CostEstimate,
    EstimationMethod,
    ManagedDiskCostCalculator,
    ManagedDiskMetadata,
    build_default_registry,
)
from .pricing import PriceItem, RetailPricingLookup

__all__ = [
    "AnfCostCalculator",
    "AnfMetadata",
    "AzureFilesCostCalculator",
    "AzureFilesMetadata",
    "ConfidenceTier",
    "CostComponent",
    "CostEstimate",
    "EstimationMethod",
    "JobCostSummary",
    "ManagedDiskCostCalculator",
    "ManagedDiskMetadata",
    "PriceItem",
    "RetailPricingLookup",
    "aggregate",
    "build_default_registry",
    "forecast_costs",
]
