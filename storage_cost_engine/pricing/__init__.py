from .cache import PriceCache, build_cache_key, get_default_cache
from .items import PriceItem
from .lookup import (
    ANF,
    AZURE_FILES,
    AZURE_FILES_PROVISIONED,
    MANAGED_DISK,
    PricingLookup,
    RetailPricingLookup,
    build_retail_filter,
)
from .retail_api import query_retail_prices

__all__ = [
    "ANF",
    "AZURE_FILES",
    "AZURE_FILES_PROVISIONED",
    "MANAGED_DISK",
    "PriceCache",
    "PriceItem",
    "PricingLookup",
    "RetailPricingLookup",
    "build_cache_key",
    "build_retail_filter",
    "get_default_cache",
    "query_retail_prices",
]
