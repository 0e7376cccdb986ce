from datetime import date

import pytest

from storage_cost_engine.billing import CostEntry
from storage_cost_engine.calculators import ConfidenceTier, ManagedDiskCostCalculator, ManagedDiskMetadata
from storage_cost_engine.calculators.managed_disk import NO_BILLING_WARNING
from storage_cost_engine.pricing.lookup import MANAGED_DISK


def _disk(**overrides):
    values = dict(
        resource_id="/subscriptions/sub-1/resourceGroups/rg/providers/Microsoft.Compute/disks/d1",
        name="d1",
        region="eastus",
        subscription_id="sub-1",
        disk_type="Premium SSD",
        disk_size_gb=128,
    )
    values.update(overrides)
    return ManagedDiskMetadata(**values)


def _premium_prices(make_meter):
    return {
        MANAGED_DISK: [
            make_meter("P15 LRS Disk", 38.0, unit="1/Month", sku="P15 LRS"),
            make_meter("P10 LRS Disk", 19.71, unit="1/Month", sku="P10 LRS"),
            make_meter("P1 LRS Disk", 0.77, unit="1/Month", sku="P1 LRS"),
            make_meter("LRS Snapshot", 0.12, sku="Snapshot LRS"),
        ]
    }


def test_actual_billing_wins_over_retail(make_pricing, make_meter, make_actual_costs):
    billing = make_actual_costs([CostEntry(cost=45.50), CostEntry(cost=45.50)])
    pricing = make_pricing(_premium_prices(make_meter))
    calc = ManagedDiskCostCalculator(pricing, billing, today=lambda: date(2024, 3, 31))

    est = calc.calculate(_disk())

    assert est.total_estimated_cost == pytest.approx(91.00)
    assert est.confidence_level == 95
    assert "Actual billing" in est.estimation_method
    assert pricing.calls == []
    sub, rid, start, end = billing.calls[0]
    assert sub == "sub-1"
    assert (start, end) == (date(2024, 3, 1), date(2024, 3, 31))


def test_actual_billing_credits_reduce_total(make_pricing, make_meter, make_actual_costs):
    billing = make_actual_costs([CostEntry(cost=50.0), CostEntry(cost=-4.5)])
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)), billing)

    est = calc.calculate(_disk())

    assert est.total_estimated_cost == pytest.approx(45.5)
    assert est.total_estimated_cost == pytest.approx(sum(c.estimated_cost for c in est.components))
    assert all(c.quantity >= 0 for c in est.components)
    assert est.confidence is ConfidenceTier.ACTUAL_BILLING


def test_actual_billing_mixed_currencies_are_flagged(make_pricing, make_meter, make_actual_costs):
    billing = make_actual_costs([CostEntry(cost=10.0, currency="EUR"), CostEntry(cost=5.0, currency="USD")])
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)), billing)

    est = calc.calculate(_disk())

    assert est.currency == "EUR"
    assert any("mixed currencies" in w for w in est.warnings)


def test_actual_billing_single_currency_has_no_currency_warning(make_pricing, make_meter, make_actual_costs):
    billing = make_actual_costs([CostEntry(cost=10.0, currency="EUR"), CostEntry(cost=5.0, currency="EUR")])
    est = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)), billing).calculate(_disk())

    assert est.currency == "EUR"
    assert not any("currencies" in w for w in est.warnings)


def test_retail_fallback_resolves_tier(make_pricing, make_meter, make_actual_costs):
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)), make_actual_costs([]))

    est = calc.calculate(_disk())

    assert any("P10" in n for n in est.notes)
    assert NO_BILLING_WARNING in est.warnings
    assert est.total_estimated_cost == pytest.approx(19.71)
    assert est.confidence is ConfidenceTier.FULL_RETAIL_MATCH


def test_small_tier_does_not_match_longer_sku(make_pricing, make_meter):
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)))

    est = calc.calculate(_disk(disk_size_gb=4))

    assert "Disk tier: P1" in est.notes
    assert est.total_estimated_cost == pytest.approx(0.77)


def test_billing_failure_falls_back_to_retail(make_pricing, make_meter, make_actual_costs):
    billing = make_actual_costs(error=RuntimeError("403 forbidden"))
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)), billing)

    est = calc.calculate(_disk())

    assert est.total_estimated_cost == pytest.approx(19.71)
    assert NO_BILLING_WARNING in est.warnings


def test_billing_lookup_skipped_without_subscription(make_pricing, make_meter, make_actual_costs):
    billing = make_actual_costs([CostEntry(cost=1.0)])
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)), billing)

    est = calc.calculate(_disk(subscription_id=""))

    assert billing.calls == []
    assert est.method.value == "retail_pricing"


def test_snapshots_added_to_retail_estimate(make_pricing, make_meter):
    calc = ManagedDiskCostCalculator(make_pricing(_premium_prices(make_meter)))

    est = calc.calculate(_disk(snapshot_size_gb=10))

    snap = [c for c in est.components if c.component_type == "snapshots"][0]
    assert snap.estimated_cost == pytest.approx(1.2)


def test_standard_hdd_bills_transactions(make_pricing, make_meter):
    prices = {
        MANAGED_DISK: [
            make_meter("S10 LRS Disk", 5.89, unit="1/Month", sku="S10 LRS"),
            make_meter("Disk Operations", 0.0005, unit="10K", sku="Standard LRS"),
        ]
    }
    calc = ManagedDiskCostCalculator(make_pricing(prices))

    est = calc.calculate(_disk(disk_type="Standard HDD", disk_size_gb=100, transactions_per_month=50_000))

    assert "Disk tier: S10" in est.notes
    tx = [c for c in est.components if c.component_type == "transactions"][0]
    assert tx.quantity == 5


def test_premium_ssd_v2_prices_capacity_iops_and_throughput(make_pricing, make_meter):
    prices = {
        MANAGED_DISK: [
            make_meter("Premium LRS Provisioned Capacity", 0.08, unit="1 GiB/Month"),
            make_meter("Premium LRS Provisioned IOPS", 0.005, unit="1 IOPS/Month"),
            make_meter("Premium LRS Provisioned Throughput (MBps)", 0.04, unit="1 MBps/Month"),
        ]
    }
    calc = ManagedDiskCostCalculator(make_pricing(prices))

    est = calc.calculate(
        _disk(disk_type="Premium SSD v2", disk_size_gb=256, provisioned_iops=5000, provisioned_throughput_mbps=200)
    )

    assert [c.component_type for c in est.components] == ["storage", "iops", "throughput"]
    assert est.total_estimated_cost == pytest.approx(256 * 0.08 + 5000 * 0.005 + 200 * 0.04)
    assert est.confidence is ConfidenceTier.FULL_RETAIL_MATCH


def test_unknown_disk_type_is_no_data(make_pricing):
    pricing = make_pricing({})
    est = ManagedDiskCostCalculator(pricing).calculate(_disk(disk_type="Floppy"))

    assert "Disk tier: Unknown" in est.notes
    assert est.confidence is ConfidenceTier.NO_DATA
    assert pricing.calls == []


def test_no_prices_is_no_data(make_pricing):
    est = ManagedDiskCostCalculator(make_pricing({})).calculate(_disk())

    assert est.total_estimated_cost == 0
    assert est.confidence is ConfidenceTier.NO_DATA
    assert any("no pricing data" in w.lower() for w in est.warnings)
