from .anf import AnfCostCalculator
from .azure_files import AzureFilesCostCalculator
from .base import BaseCostCalculator, CostCalculator
from .managed_disk import ManagedDiskCostCalculator, resolve_disk_tier
from .registry import CalculatorRegistry, build_default_registry
from .types import (
    AnfMetadata,
    AzureFilesMetadata,
    ConfidenceTier,
    CostComponent,
    CostEstimate,
    EstimationMethod,
    ManagedDiskMetadata,
    ResourceMetadata,
)

__all__ = [
    "AnfCostCalculator",
    "AnfMetadata",
    "AzureFilesCostCalculator",
    "AzureFilesMetadata",
    "BaseCostCalculator",
    "CalculatorRegistry",
    "ConfidenceTier",
    "CostCalculator",
    "CostComponent",
    "CostEstimate",
    "EstimationMethod",
    "ManagedDiskCostCalculator",
    "ManagedDiskMetadata",
    "ResourceMetadata",
    "build_default_registry",
    "resolve_disk_tier",
]
