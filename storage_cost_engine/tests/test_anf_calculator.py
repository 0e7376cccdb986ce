import pytest

from storage_cost_engine.calculators import AnfCostCalculator, AnfMetadata, ConfidenceTier
from storage_cost_engine.pricing.lookup import ANF


def test_standard_volume_bills_provisioned_capacity(make_pricing, make_meter):
    pricing = make_pricing({ANF: [make_meter("Standard Capacity", 0.000202, unit="1 GiB/Hour")]})
    calc = AnfCostCalculator(pricing)

    est = calc.calculate(
        AnfMetadata(name="vol1", region="eastus", service_level="Standard", provisioned_capacity_gb=4096, used_capacity_gb=100)
    )

    assert len(est.components) == 1
    assert est.components[0].quantity == 4096
    assert est.total_estimated_cost == pytest.approx(0.827392)
    assert any("64 MiB/s" in n for n in est.notes)
    assert est.confidence is ConfidenceTier.FULL_RETAIL_MATCH
    assert est.estimation_method == "Service level pricing (Standard)"
    assert pricing.calls[0][2] == "Standard"


def _premium_cool_prices(make_meter):
    return {
        ANF: [
            make_meter("Premium Capacity", 0.000403, unit="1 GiB/Hour"),
            make_meter("Premium Cool Capacity", 0.000035, unit="1 GiB/Hour"),
            make_meter("Premium Cool Tiering", 0.01, unit="1 GiB"),
            make_meter("Premium Cool Retrieval", 0.02, unit="1 GiB"),
        ]
    }


def _premium_cool_volume(**overrides):
    values = dict(
        name="vol-cool",
        region="eastus",
        service_level="Premium",
        provisioned_capacity_gb=10240,
        cool_access_enabled=True,
        hot_data_gb=2048,
        cool_data_gb=8192,
        data_tiered_to_cool_gb=500,
        data_retrieved_from_cool_gb=100,
    )
    values.update(overrides)
    return AnfMetadata(**values)


def test_cool_access_volume_has_four_components(make_pricing, make_meter):
    calc = AnfCostCalculator(make_pricing(_premium_cool_prices(make_meter)))

    est = calc.calculate(_premium_cool_volume())

    types = [c.component_type for c in est.components]
    assert sorted(types) == sorted(["storage", "storage_cool", "cool_tiering", "cool_retrieval"])
    assert any("36 MiB/s" in n for n in est.notes)
    storage = [c for c in est.components if c.component_type == "storage"][0]
    assert storage.quantity == 10240
    assert est.confidence is ConfidenceTier.FULL_RETAIL_MATCH
    assert est.total_estimated_cost == pytest.approx(sum(c.estimated_cost for c in est.components))


def test_missing_cool_meters_degrade_but_keep_capacity(make_pricing, make_meter):
    calc = AnfCostCalculator(make_pricing({ANF: [make_meter("Premium Capacity", 0.000403)]}))

    est = calc.calculate(_premium_cool_volume())

    assert [c.component_type for c in est.components] == ["storage"]
    assert est.confidence is ConfidenceTier.DEGRADED_RETAIL_MATCH
    assert est.confidence_level >= 80
    assert any("Cool tier storage meter not found" in w for w in est.warnings)


def test_cool_access_without_breakdown_assumes_hot(make_pricing, make_meter):
    calc = AnfCostCalculator(make_pricing(_premium_cool_prices(make_meter)))

    est = calc.calculate(_premium_cool_volume(hot_data_gb=0, cool_data_gb=0))

    assert [c.component_type for c in est.components] == ["storage"]
    assert "Assuming all data is hot tier" in est.notes
    assert est.confidence is ConfidenceTier.DEGRADED_RETAIL_MATCH


def test_minimum_capacity_is_advisory_only(make_pricing, make_meter):
    calc = AnfCostCalculator(make_pricing({ANF: [make_meter("Standard Capacity", 0.0002)]}))

    est = calc.calculate(AnfMetadata(name="tiny", region="eastus", provisioned_capacity_gb=10))

    assert est.components[0].quantity == 10
    assert any("Minimum 50 GB" in n for n in est.notes)


def test_unknown_service_level_falls_back_to_standard(make_pricing, make_meter):
    pricing = make_pricing({ANF: [make_meter("Standard Capacity", 0.0002)]})
    est = AnfCostCalculator(pricing).calculate(
        AnfMetadata(name="v", region="eastus", service_level="Platinum", provisioned_capacity_gb=1024)
    )

    assert pricing.calls[0][2] == "Standard"
    assert any("16 MiB/s" in n for n in est.notes)


def test_missing_capacity_meter_is_no_data(make_pricing, make_meter):
    calc = AnfCostCalculator(make_pricing({ANF: [make_meter("Standard Data Transfer", 0.01)]}))

    est = calc.calculate(AnfMetadata(name="v", region="eastus", provisioned_capacity_gb=1024))

    assert est.total_estimated_cost == 0
    assert est.confidence is ConfidenceTier.NO_DATA
    assert any("capacity meter" in w for w in est.warnings)


def test_snapshots_are_noted_not_billed(make_pricing, make_meter):
    calc = AnfCostCalculator(make_pricing({ANF: [make_meter("Standard Capacity", 0.0002)]}))

    est = calc.calculate(AnfMetadata(name="v", region="eastus", provisioned_capacity_gb=1024, snapshot_size_gb=64))

    assert [c.component_type for c in est.components] == ["storage"]
    assert any("no separate charge" in n for n in est.notes)
