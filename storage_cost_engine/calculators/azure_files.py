from __future__ import annotations

from typing import List, Optional

from ..pricing.items import PriceItem
from ..pricing.lookup import AZURE_FILES, AZURE_FILES_PROVISIONED
from .base import BaseCostCalculator, as_quantity, transaction_units
from .types import (
    RETAIL_DATA_SOURCE,
    AzureFilesMetadata,
    ConfidenceTier,
    CostComponent,
    CostEstimate,
    EstimationMethod,
)


def _first(prices: List[PriceItem], predicate) -> Optional[PriceItem]:
    for p in prices:
        if predicate(p):
            return p
    return None


class AzureFilesCostCalculator(BaseCostCalculator):
    """Azure Files shares: provisioned (Premium) and pay-as-you-go (Hot/Cool/TransactionOptimized)."""

    resource_type = "AzureFile"

    def _initial_method(self, metadata: AzureFilesMetadata) -> EstimationMethod:
        if metadata.is_provisioned:
            return EstimationMethod.PROVISIONED_PRICING
        return EstimationMethod.PAY_AS_YOU_GO_PRICING

    def _populate(self, metadata: AzureFilesMetadata, estimate: CostEstimate) -> None:
        if metadata.is_provisioned:
            prices = self._prices(estimate, metadata.region, AZURE_FILES_PROVISIONED, redundancy=metadata.redundancy)
            where = f"for Premium Files in {metadata.region}"
        else:
            prices = self._prices(
                estimate, metadata.region, AZURE_FILES, sku=metadata.tier, redundancy=metadata.redundancy
            )
            where = f"for {metadata.tier} tier in {metadata.region}"

        if not prices:
            self._ensure_no_data_warning(estimate, where)
            estimate.confidence = ConfidenceTier.NO_DATA
            return

        if metadata.is_provisioned:
            storage_found, degraded = self._provisioned(metadata, estimate, prices)
        else:
            storage_found, degraded = self._pay_as_you_go(metadata, estimate, prices)

        degraded = self._snapshots(metadata, estimate, prices) or degraded
        self._egress(metadata, estimate, prices)

        if storage_found:
            estimate.confidence = ConfidenceTier.DEGRADED_RETAIL_MATCH if degraded else ConfidenceTier.FULL_RETAIL_MATCH
        elif estimate.components:
            estimate.confidence = ConfidenceTier.PARTIAL_RETAIL_MATCH
        else:
            self._ensure_no_data_warning(estimate, f"for the storage meter {where}")
            estimate.confidence = ConfidenceTier.NO_DATA

    def _provisioned(self, metadata: AzureFilesMetadata, estimate: CostEstimate, prices: List[PriceItem]):
        capacity = _first(prices, lambda p: p.is_storage_capacity)
        if capacity is None:
            estimate.warnings.append("Provisioned capacity meter not found for Premium Files")
            return False, True

        provisioned_gb = as_quantity(metadata.provisioned_capacity_gb)
        estimate.add_component(
            self._component("storage", provisioned_gb, capacity, f"Provisioned capacity ({provisioned_gb:,.0f} GB)")
        )
        estimate.notes.append(f"Provisioned {provisioned_gb:,.0f} GB includes transactions and performance")
        return True, False

    def _pay_as_you_go(self, metadata: AzureFilesMetadata, estimate: CostEstimate, prices: List[PriceItem]):
        degraded = False
        storage_found = False

        capacity = _first(prices, lambda p: p.is_storage_capacity)
        used_gb = as_quantity(metadata.used_capacity_gb)
        if used_gb <= 0:
            used_gb = as_quantity(metadata.provisioned_capacity_gb)
            estimate.notes.append("Using provisioned capacity instead of actual usage")
            degraded = True

        if capacity is not None:
            estimate.add_component(self._component("storage", used_gb, capacity, f"Storage capacity ({used_gb:,.2f} GB)"))
            storage_found = True
        else:
            estimate.warnings.append(f"Data stored meter not found for {metadata.tier} tier")

        transactions = as_quantity(metadata.transactions_per_month)
        if transactions > 0:
            tx_prices = [p for p in prices if p.is_transaction]
            if tx_prices:
                # Write/read/list meters differ; the average stands in for the mix.
                avg_price = sum(p.unit_price for p in tx_prices) / len(tx_prices)
                estimate.add_component(
                    CostComponent(
                        component_type="transactions",
                        quantity=transaction_units(transactions),
                        unit_price=avg_price,
                        unit="10K transactions",
                        description=f"Transactions ({transactions:,.0f} operations)",
                        data_source=RETAIL_DATA_SOURCE + (" (averaged)" if len(tx_prices) > 1 else ""),
                    )
                )
            else:
                estimate.warnings.append("Transaction pricing not found, estimate excludes transaction costs")
                degraded = True
        else:
            estimate.notes.append("Transaction metrics unavailable, cost may be underestimated")
            degraded = True

        return storage_found, degraded

    def _snapshots(self, metadata: AzureFilesMetadata, estimate: CostEstimate, prices: List[PriceItem]) -> bool:
        snapshot_gb = as_quantity(metadata.snapshot_size_gb)
        if snapshot_gb <= 0:
            return False
        snapshot = _first(prices, lambda p: p.is_snapshot)
        if snapshot is None:
            estimate.warnings.append("Snapshot pricing not found, estimate excludes snapshot costs")
            return True
        estimate.add_component(
            self._component("snapshots", snapshot_gb, snapshot, f"Snapshots ({snapshot_gb:,.2f} GB differential)")
        )
        return False

    def _egress(self, metadata: AzureFilesMetadata, estimate: CostEstimate, prices: List[PriceItem]) -> None:
        egress_gb = as_quantity(metadata.egress_gb_per_month)
        if egress_gb <= 0:
            return
        egress = _first(prices, lambda p: p.is_data_transfer and p.unit_price > 0)
        if egress is None:
            return
        estimate.add_component(self._component("egress", egress_gb, egress, f"Data egress ({egress_gb:,.2f} GB)"))
