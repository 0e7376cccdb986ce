import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1].parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage_cost_engine.pricing.items import PriceItem  # noqa: E402


def pytest_runtest_setup():
    # Ensure price cache is cleared between tests to avoid cross-test leakage
    from storage_cost_engine.pricing.cache import get_default_cache

    get_default_cache().clear()


def meter(name, price, unit="1 GB/Month", sku="", product=""):
    return PriceItem(meter_name=name, unit_of_measure=unit, unit_price=price, sku_name=sku, product_name=product)


class FakePricing:
    """PricingLookup returning canned meters per resource type."""

    def __init__(self, prices=None, error=None):
        self.prices = prices or {}
        self.error = error
        self.calls = []

    def get_pricing(self, region, resource_type, sku=None, redundancy=None):
        self.calls.append((region, resource_type, sku, redundancy))
        if self.error is not None:
            raise self.error
        return list(self.prices.get(resource_type, []))


class FakeActualCosts:
    def __init__(self, entries=None, error=None):
        self.entries = entries
        self.error = error
        self.calls = []

    def get_actual_cost(self, subscription_id, resource_id, start_date, end_date):
        self.calls.append((subscription_id, resource_id, start_date, end_date))
        if self.error is not None:
            raise self.error
        return self.entries


@pytest.fixture
def make_pricing():
    return FakePricing


@pytest.fixture
def make_actual_costs():
    return FakeActualCosts


@pytest.fixture
def make_meter():
    return meter
