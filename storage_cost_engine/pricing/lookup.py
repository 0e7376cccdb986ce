# storage_cost_engine/pricing/lookup.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

import httpx

from ..config import DEFAULT_CURRENCY
from .cache import PriceCache, build_cache_key, get_default_cache
from .items import PriceItem
from .retail_api import query_retail_prices

_LOGGER = logging.getLogger(__name__)

# Resource-type keys understood by the lookup.
AZURE_FILES = "azure_files"
AZURE_FILES_PROVISIONED = "azure_files_provisioned"
ANF = "anf"
MANAGED_DISK = "managed_disk"


class PricingLookup(Protocol):
    """Resolves retail meters for a resource type / region / SKU combination."""

    def get_pricing(
        self,
        region: str,
        resource_type: str,
        sku: Optional[str] = None,
        redundancy: Optional[str] = None,
    ) -> List[PriceItem]: ...


def _q(value: str) -> str:
    # OData string literal: single quotes are doubled.
    return (value or "").replace("'", "''")


def _files_tier_clause(tier: Optional[str]) -> str:
    t = (tier or "Hot").strip().lower()
    if t in ("transactionoptimized", "transaction optimized", "standard"):
        # Transaction optimized SKUs carry no tier suffix.
        return "not (contains(skuName, 'Hot') or contains(skuName, 'Cool'))"
    if t == "cool":
        return "contains(skuName, 'Cool')"
    return "contains(skuName, 'Hot')"


def build_retail_filter(
    region: str,
    resource_type: str,
    sku: Optional[str] = None,
    redundancy: Optional[str] = None,
) -> str:
    """OData $filter for the Retail Prices API; empty string for unknown types."""
    region_clause = f"armRegionName eq '{_q(region)}'"
    consumption = "priceType eq 'Consumption'"
    red = (redundancy or "").strip()

    if resource_type == AZURE_FILES:
        parts = ["serviceName eq 'Storage'", "productName eq 'Files'", region_clause, consumption, _files_tier_clause(sku)]
        if red:
            parts.append(f"contains(skuName, '{_q(red)}')")
        return " and ".join(parts)

    if resource_type == AZURE_FILES_PROVISIONED:
        parts = ["serviceName eq 'Storage'", "productName eq 'Premium Files'", region_clause, consumption]
        if red:
            parts.append(f"contains(skuName, '{_q(red)}')")
        return " and ".join(parts)

    if resource_type == ANF:
        level = (sku or "Standard").strip()
        return " and ".join(
            [
                "serviceName eq 'Azure NetApp Files'",
                f"contains(productName, '{_q(level)}')",
                region_clause,
                consumption,
            ]
        )

    if resource_type == MANAGED_DISK:
        product = (sku or "Premium SSD Managed Disks").strip()
        parts = ["serviceName eq 'Storage'", f"contains(productName, '{_q(product)}')", region_clause, consumption]
        if red:
            parts.append(f"contains(skuName, '{_q(red)}')")
        return " and ".join(parts)

    return ""


class RetailPricingLookup:
    """
    PricingLookup backed by the Azure Retail Prices API.

    Results are cached per (resource type, region, sku, redundancy, currency).
    Transport faults and malformed payloads are logged and reported as an
    empty list; they are not cached, so the next call tries again.
    """

    def __init__(
        self,
        cache: Optional[PriceCache] = None,
        currency: str = DEFAULT_CURRENCY,
        fetch: Callable[..., List[Dict[str, Any]]] = query_retail_prices,
    ):
        self.cache = cache if cache is not None else get_default_cache()
        self.currency = currency
        self._fetch = fetch

    def get_pricing(
        self,
        region: str,
        resource_type: str,
        sku: Optional[str] = None,
        redundancy: Optional[str] = None,
    ) -> List[PriceItem]:
        filter_str = build_retail_filter(region, resource_type, sku, redundancy)
        if not filter_str:
            _LOGGER.warning("No retail filter for resource type %r", resource_type)
            return []

        key = build_cache_key(resource_type, region, sku, redundancy, self.currency)

        def fetch() -> List[PriceItem]:
            raw = self._fetch(filter_str, currency=self.currency)
            return [PriceItem.from_retail_item(it) for it in raw if isinstance(it, dict)]

        try:
            return self.cache.get_or_fetch(key, fetch)
        except (httpx.HTTPError, ValueError) as ex:
            _LOGGER.warning(
                "Retail price lookup failed for %s in %s (sku=%s, redundancy=%s): %s",
                resource_type,
                region,
                sku,
                redundancy,
                ex,
            )
            return []
