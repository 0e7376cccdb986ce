from __future__ import annotations

import logging
import math
import re
from datetime import date, timedelta
from typing import Callable, List, Optional

from ..billing.actual_cost import ActualCostLookup, CostEntry
from ..config import ACTUAL_BILLING_LOOKBACK_DAYS
from ..pricing.items import PriceItem
from ..pricing.lookup import MANAGED_DISK, PricingLookup
from .base import BaseCostCalculator, as_quantity, transaction_units
from .tables import DiskFamily, find_disk_family
from .types import BILLING_DATA_SOURCE, ConfidenceTier, CostComponent, CostEstimate, EstimationMethod, ManagedDiskMetadata

_LOGGER = logging.getLogger(__name__)

NO_BILLING_WARNING = "Actual billing data not available, using retail pricing"


def resolve_disk_tier(disk_type: str, size_gb: float) -> str:
    """SKU tier (P10, E20, S30, ...) for a disk; the family name for v2/Ultra; 'Unknown' otherwise."""
    family = find_disk_family(disk_type)
    if family is None:
        return "Unknown"
    return family.tier_for(as_quantity(size_gb))


def _billed_amount(value) -> float:
    """Billed money keeps its sign; only unparseable or non-finite values count as zero."""
    try:
        f = float(value)
    except (TypeError, ValueError):
        return 0.0
    return f if math.isfinite(f) else 0.0


def _tier_pattern(tier: str) -> re.Pattern:
    # P1 must not match P10.
    return re.compile(rf"(?<![A-Za-z0-9]){re.escape(tier)}(?![0-9])", re.IGNORECASE)


def _match_tier_price(prices: List[PriceItem], tier: str, redundancy: str) -> Optional[PriceItem]:
    pattern = _tier_pattern(tier)
    candidates = [
        p
        for p in prices
        if (pattern.search(p.meter_name) or pattern.search(p.sku_name))
        and "mount" not in p.meter_name.lower()
        and "burst" not in p.meter_name.lower()
    ]
    if not candidates:
        return None
    red = (redundancy or "").lower()
    for p in candidates:
        if red and red in p.sku_name.lower():
            return p
    return candidates[0]


def _find(prices: List[PriceItem], *needles: str) -> Optional[PriceItem]:
    for p in prices:
        m = p.meter_name.lower()
        if any(n in m for n in needles):
            return p
    return None


class ManagedDiskCostCalculator(BaseCostCalculator):
    """
    Managed Disks: actual billing first, retail pricing as the fallback.

    The billing lookup is keyed by subscription + resource id over the
    trailing ``lookback_days``. Any failure of that lookup is treated as
    "no billing data".
    """

    resource_type = "ManagedDisk"

    def __init__(
        self,
        pricing: PricingLookup,
        actual_costs: Optional[ActualCostLookup] = None,
        lookback_days: int = ACTUAL_BILLING_LOOKBACK_DAYS,
        today: Optional[Callable[[], date]] = None,
    ):
        super().__init__(pricing)
        self.actual_costs = actual_costs
        self.lookback_days = lookback_days
        self._today = today or date.today

    def _populate(self, metadata: ManagedDiskMetadata, estimate: CostEstimate) -> None:
        entries = self._actual_billing(metadata)
        if entries:
            self._from_actual_billing(metadata, estimate, entries)
        else:
            self._from_retail_pricing(metadata, estimate)

    # -----------------------------------------------------------------
    # Actual billing
    # -----------------------------------------------------------------
    def _actual_billing(self, metadata: ManagedDiskMetadata) -> List[CostEntry]:
        if self.actual_costs is None:
            return []
        if not metadata.subscription_id or not metadata.resource_id:
            _LOGGER.debug("Missing subscription or resource id for %s, skipping billing lookup", metadata.name)
            return []

        end_date = self._today()
        start_date = end_date - timedelta(days=self.lookback_days)
        try:
            entries = self.actual_costs.get_actual_cost(metadata.subscription_id, metadata.resource_id, start_date, end_date)
        except Exception as ex:
            _LOGGER.warning("Failed to retrieve actual billing data for %s: %s", metadata.name, ex)
            return []
        return list(entries or [])

    def _from_actual_billing(self, metadata: ManagedDiskMetadata, estimate: CostEstimate, entries: List[CostEntry]) -> None:
        # Credits and refunds come back as negative rows and must reduce the total.
        total = sum(_billed_amount(e.cost) for e in entries)
        size_gb = as_quantity(metadata.disk_size_gb)

        estimate.method = EstimationMethod.ACTUAL_BILLING
        estimate.method_detail = "Cost Management API"
        currencies = sorted({e.currency for e in entries if e.currency})
        if currencies:
            estimate.currency = entries[0].currency or currencies[0]
        if len(currencies) > 1:
            _LOGGER.warning("Mixed billing currencies for %s: %s", metadata.name, ", ".join(currencies))
            estimate.warnings.append(
                f"Billing entries use mixed currencies ({', '.join(currencies)}); total reported in {estimate.currency}"
            )
        estimate.add_component(
            CostComponent(
                component_type="actual_cost",
                quantity=1,
                unit_price=total,
                unit="month",
                description=f"{metadata.disk_type} disk ({size_gb:,.0f} GB) - actual cost",
                data_source=BILLING_DATA_SOURCE,
            )
        )
        estimate.notes.append(f"Using actual billing data from the last {self.lookback_days} days ({len(entries)} entries)")
        estimate.notes.append(f"Disk: {metadata.disk_type}, Size: {size_gb:,.0f} GB")
        estimate.confidence = ConfidenceTier.ACTUAL_BILLING

    # -----------------------------------------------------------------
    # Retail pricing fallback
    # -----------------------------------------------------------------
    def _from_retail_pricing(self, metadata: ManagedDiskMetadata, estimate: CostEstimate) -> None:
        estimate.method = EstimationMethod.RETAIL_PRICING
        estimate.method_detail = "no billing data available"
        estimate.warnings.append(NO_BILLING_WARNING)

        size_gb = as_quantity(metadata.disk_size_gb)
        family = find_disk_family(metadata.disk_type)
        tier = family.tier_for(size_gb) if family is not None else "Unknown"
        estimate.notes.append(f"Disk tier: {tier}")

        if family is None:
            estimate.warnings.append(f"Unrecognised disk type '{metadata.disk_type}'")
            self._ensure_no_data_warning(estimate, f"for {metadata.disk_type} in {metadata.region}")
            estimate.confidence = ConfidenceTier.NO_DATA
            return

        prices = self._prices(estimate, metadata.region, MANAGED_DISK, sku=family.product, redundancy=metadata.redundancy)
        if not prices:
            self._ensure_no_data_warning(estimate, f"for {family.name} in {metadata.region}")
            estimate.confidence = ConfidenceTier.NO_DATA
            return

        if family.flexible:
            core_found, degraded = self._flexible(metadata, estimate, prices, family, size_gb)
        else:
            core_found, degraded = self._tiered(metadata, estimate, prices, tier, size_gb)

        self._snapshots(metadata, estimate, prices)
        self._transactions(metadata, estimate, prices, family)

        if core_found:
            estimate.confidence = ConfidenceTier.DEGRADED_RETAIL_MATCH if degraded else ConfidenceTier.FULL_RETAIL_MATCH
        elif estimate.components:
            estimate.confidence = ConfidenceTier.PARTIAL_RETAIL_MATCH
        else:
            self._ensure_no_data_warning(estimate, f"for disk tier {tier}")
            estimate.confidence = ConfidenceTier.NO_DATA

    def _tiered(self, metadata, estimate: CostEstimate, prices: List[PriceItem], tier: str, size_gb: float):
        price = _match_tier_price(prices, tier, metadata.redundancy)
        degraded = False
        if price is None:
            price = next((p for p in prices if p.is_storage_capacity), None)
            if price is None:
                estimate.warnings.append(f"Could not find pricing for disk tier {tier}")
                return False, True
            estimate.warnings.append(f"No meter for disk tier {tier}, using {price.meter_name}")
            degraded = True

        estimate.add_component(
            self._component("storage", 1, price, f"{metadata.disk_type} - {tier} ({size_gb:,.0f} GB)")
        )
        return True, degraded

    def _flexible(self, metadata, estimate: CostEstimate, prices: List[PriceItem], family: DiskFamily, size_gb: float):
        """Premium SSD v2 / Ultra: capacity, IOPS and throughput are billed separately."""
        capacity = next((p for p in prices if p.is_storage_capacity), None)
        if capacity is None:
            estimate.warnings.append(f"Capacity meter not found for {family.name}")
            return False, True

        estimate.add_component(self._component("storage", size_gb, capacity, f"{family.name} capacity ({size_gb:,.0f} GB)"))

        degraded = False
        iops = as_quantity(metadata.provisioned_iops)
        throughput = as_quantity(metadata.provisioned_throughput_mbps)
        if iops <= 0 or throughput <= 0:
            estimate.notes.append("IOPS/throughput not specified for flexible pricing disk")
            degraded = True

        if iops > 0:
            iops_price = _find(prices, "iops")
            if iops_price is None:
                estimate.warnings.append(f"IOPS meter not found for {family.name}")
                degraded = True
            else:
                estimate.add_component(self._component("iops", iops, iops_price, f"Provisioned IOPS ({iops:,.0f})"))

        if throughput > 0:
            tput_price = _find(prices, "throughput")
            if tput_price is None:
                estimate.warnings.append(f"Throughput meter not found for {family.name}")
                degraded = True
            else:
                estimate.add_component(
                    self._component("throughput", throughput, tput_price, f"Provisioned throughput ({throughput:,.0f} MB/s)")
                )

        return True, degraded

    def _snapshots(self, metadata: ManagedDiskMetadata, estimate: CostEstimate, prices: List[PriceItem]) -> None:
        snapshot_gb = as_quantity(metadata.snapshot_size_gb)
        if snapshot_gb <= 0:
            return
        snapshot = next((p for p in prices if p.is_snapshot), None)
        if snapshot is None:
            return
        estimate.add_component(
            self._component("snapshots", snapshot_gb, snapshot, f"Disk snapshots ({snapshot_gb:,.2f} GB differential)")
        )

    def _transactions(self, metadata: ManagedDiskMetadata, estimate: CostEstimate, prices: List[PriceItem], family: DiskFamily) -> None:
        # Only Standard HDD/SSD bill per transaction.
        transactions = as_quantity(metadata.transactions_per_month)
        if transactions <= 0 or not family.name.lower().startswith("standard"):
            return
        tx = next((p for p in prices if p.is_transaction), None)
        if tx is None:
            return
        estimate.add_component(
            self._component(
                "transactions",
                transaction_units(transactions),
                tx,
                f"Disk transactions ({transactions:,.0f})",
                unit="10K transactions",
            )
        )
