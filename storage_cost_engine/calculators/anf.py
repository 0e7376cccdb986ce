from __future__ import annotations

from typing import Callable, List, Optional

from ..pricing.items import PriceItem
from ..pricing.lookup import ANF, PricingLookup
from .base import BaseCostCalculator, as_quantity
from .tables import AnfLevels, ServiceLevel, load_anf_levels
from .types import AnfMetadata, ConfidenceTier, CostEstimate, EstimationMethod

GIB_PER_TIB = 1024.0


def _find(prices: List[PriceItem], predicate: Callable[[str], bool]) -> Optional[PriceItem]:
    for p in prices:
        if predicate(p.meter_name.lower()):
            return p
    return None


def _is_cool_storage(m: str) -> bool:
    if "tiering" in m or "retrieval" in m or "transfer" in m:
        return False
    return "cool" in m and ("storage" in m or "capacity" in m)


def _is_tiering(m: str) -> bool:
    return "tiering" in m or ("cool" in m and "write" in m)


def _is_retrieval(m: str) -> bool:
    return "retrieval" in m or ("cool" in m and "read" in m)


def included_throughput_mibps(provisioned_gb: float, level: ServiceLevel, cool_access: bool) -> float:
    return (provisioned_gb / GIB_PER_TIB) * level.throughput_per_tib(cool_access)


class AnfCostCalculator(BaseCostCalculator):
    """
    Azure NetApp Files volumes.

    ANF bills provisioned capacity at the service-level rate. With cool access
    enabled, data sitting in the cool tier is billed at the cool rate plus
    per-GB charges for moving data to and from the cool tier.
    """

    resource_type = "ANF"

    def __init__(self, pricing: PricingLookup, levels: Optional[AnfLevels] = None):
        super().__init__(pricing)
        self.levels = levels or load_anf_levels()

    def _initial_method(self, metadata: AnfMetadata) -> EstimationMethod:
        return EstimationMethod.SERVICE_LEVEL_PRICING

    def _populate(self, metadata: AnfMetadata, estimate: CostEstimate) -> None:
        level = self.levels.get(metadata.service_level)
        cool_access = bool(metadata.cool_access_enabled)
        provisioned_gb = as_quantity(metadata.provisioned_capacity_gb)
        estimate.method_detail = f"{level.name}, cool access" if cool_access else level.name

        self._advisory_notes(metadata, estimate, level, provisioned_gb, cool_access)

        prices = self._prices(estimate, metadata.region, ANF, sku=level.name)
        if not prices:
            self._ensure_no_data_warning(estimate, f"for ANF {level.name} in {metadata.region}")
            estimate.confidence = ConfidenceTier.NO_DATA
            return

        capacity = _find(prices, lambda m: ("provisioned" in m or "capacity" in m) and "cool" not in m)
        if capacity is not None:
            estimate.add_component(
                self._component(
                    "storage",
                    provisioned_gb,
                    capacity,
                    f"Provisioned capacity ({provisioned_gb:,.0f} GB) - {level.name} tier",
                )
            )
        else:
            estimate.warnings.append(f"No pricing data for the ANF {level.name} capacity meter in {metadata.region}")

        degraded = self._cool_access(metadata, estimate, prices, level) if cool_access else False

        if capacity is not None:
            estimate.confidence = ConfidenceTier.DEGRADED_RETAIL_MATCH if degraded else ConfidenceTier.FULL_RETAIL_MATCH
        elif estimate.components:
            estimate.confidence = ConfidenceTier.PARTIAL_RETAIL_MATCH
        else:
            estimate.confidence = ConfidenceTier.NO_DATA

    def _advisory_notes(
        self,
        metadata: AnfMetadata,
        estimate: CostEstimate,
        level: ServiceLevel,
        provisioned_gb: float,
        cool_access: bool,
    ) -> None:
        per_tib = level.throughput_per_tib(cool_access)
        throughput = included_throughput_mibps(provisioned_gb, level, cool_access)
        estimate.notes.append(f"Included throughput: {throughput:,.0f} MiB/s ({per_tib:g} MiB/s per TiB)")

        minimum = self.levels.min_cool_access_gib if cool_access else self.levels.min_regular_gib
        if provisioned_gb < minimum:
            kind = "cool access volumes" if cool_access else "regular volumes"
            estimate.notes.append(
                f"Minimum {minimum:,.0f} GB required for {kind} (provisioned: {provisioned_gb:,.0f} GB)"
            )

        snapshot_gb = as_quantity(metadata.snapshot_size_gb)
        if snapshot_gb > 0:
            estimate.notes.append(f"Snapshots ({snapshot_gb:,.0f} GB) consume volume capacity - no separate charge")

    def _cool_access(
        self,
        metadata: AnfMetadata,
        estimate: CostEstimate,
        prices: List[PriceItem],
        level: ServiceLevel,
    ) -> bool:
        hot_gb = as_quantity(metadata.hot_data_gb)
        cool_gb = as_quantity(metadata.cool_data_gb)
        tiered_gb = as_quantity(metadata.data_tiered_to_cool_gb)
        retrieved_gb = as_quantity(metadata.data_retrieved_from_cool_gb)

        if hot_gb == 0 and cool_gb == 0:
            estimate.warnings.append("Cool access enabled but hot/cool data breakdown not available")
            estimate.notes.append("Assuming all data is hot tier")
            return True

        degraded = False
        estimate.notes.append(f"Data distribution: {hot_gb:,.0f} GB hot, {cool_gb:,.0f} GB cool")

        if cool_gb > 0:
            cool_price = _find(prices, _is_cool_storage)
            if cool_price is None:
                estimate.warnings.append(f"Cool tier storage meter not found for ANF {level.name}")
                degraded = True
            else:
                estimate.add_component(
                    self._component("storage_cool", cool_gb, cool_price, f"Cool tier storage ({cool_gb:,.0f} GB)")
                )

        if tiered_gb > 0:
            tiering = _find(prices, _is_tiering)
            if tiering is None:
                estimate.warnings.append(f"Cool tiering meter not found for ANF {level.name}")
                degraded = True
            else:
                estimate.add_component(
                    self._component("cool_tiering", tiered_gb, tiering, f"Data tiering to cool ({tiered_gb:,.0f} GB)")
                )

        if retrieved_gb > 0:
            retrieval = _find(prices, _is_retrieval)
            if retrieval is None:
                estimate.warnings.append(f"Cool retrieval meter not found for ANF {level.name}")
                degraded = True
            else:
                estimate.add_component(
                    self._component(
                        "cool_retrieval",
                        retrieved_gb,
                        retrieval,
                        f"Data retrieval from cool ({retrieved_gb:,.0f} GB)",
                    )
                )

        if tiered_gb == 0 and retrieved_gb == 0:
            estimate.notes.append("Cool access tiering/retrieval metrics unavailable")
            degraded = True

        return degraded
