from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


def _text(item: Dict[str, Any], *keys: str) -> str:
    for k in keys:
        v = item.get(k)
        if v not in (None, ""):
            return str(v)
    return ""


def _price(item: Dict[str, Any]) -> float:
    # retailPrice is the list price; unitPrice can carry a tier discount.
    for k in ("retailPrice", "RetailPrice", "unitPrice", "UnitPrice"):
        v = item.get(k)
        if v is None:
            continue
        try:
            return float(v)
        except (TypeError, ValueError):
            continue
    return 0.0


@dataclass(frozen=True)
class PriceItem:
    """A single retail meter for a region/SKU combination."""

    meter_name: str
    unit_of_measure: str
    unit_price: float
    region: str = ""
    sku_name: str = ""
    product_name: str = ""
    service_name: str = ""
    currency: str = "USD"
    price_type: str = "Consumption"

    @classmethod
    def from_retail_item(cls, item: Dict[str, Any]) -> "PriceItem":
        return cls(
            meter_name=_text(item, "meterName", "MeterName"),
            unit_of_measure=_text(item, "unitOfMeasure", "UnitOfMeasure"),
            unit_price=_price(item),
            region=_text(item, "armRegionName", "ArmRegionName"),
            sku_name=_text(item, "skuName", "SkuName"),
            product_name=_text(item, "productName", "ProductName"),
            service_name=_text(item, "serviceName", "ServiceName"),
            currency=_text(item, "currencyCode", "CurrencyCode") or "USD",
            price_type=_text(item, "type", "Type") or "Consumption",
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceItem":
        return cls(**{k: data[k] for k in cls.__dataclass_fields__ if k in data})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def _meter(self) -> str:
        return self.meter_name.lower()

    @property
    def is_snapshot(self) -> bool:
        return "snapshot" in self._meter()

    @property
    def is_storage_capacity(self) -> bool:
        m = self._meter()
        if self.is_snapshot or "iops" in m or "throughput" in m:
            return False
        return "data stored" in m or "provisioned" in m or "capacity" in m

    @property
    def is_transaction(self) -> bool:
        m = self._meter()
        return "transaction" in m or "operation" in m

    @property
    def is_data_transfer(self) -> bool:
        m = self._meter()
        return "data transfer" in m or "bandwidth" in m
