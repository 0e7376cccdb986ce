from storage_cost_engine.calculators import (
    AnfMetadata,
    AzureFilesMetadata,
    ConfidenceTier,
    EstimationMethod,
    ManagedDiskMetadata,
    ResourceMetadata,
    build_default_registry,
)
from storage_cost_engine.pricing.lookup import ANF, AZURE_FILES


def test_registry_dispatches_by_resource_type(make_pricing, make_meter):
    pricing = make_pricing(
        {
            AZURE_FILES: [make_meter("Hot LRS Data Stored", 0.0184)],
            ANF: [make_meter("Standard Capacity", 0.0002)],
        }
    )
    reg = build_default_registry(pricing)

    estimates = reg.estimate_many(
        [
            AzureFilesMetadata(name="share", region="eastus", used_capacity_gb=100),
            AnfMetadata(name="vol", region="eastus", provisioned_capacity_gb=1024),
            ManagedDiskMetadata(name="disk", region="eastus", disk_size_gb=128),
        ]
    )

    assert [e.resource_type for e in estimates] == ["AzureFile", "ANF", "ManagedDisk"]
    assert reg.get("anf") is reg.get("ANF")


def test_unknown_resource_type_gets_unsupported_estimate(make_pricing):
    reg = build_default_registry(make_pricing({}))

    est = reg.estimate(ResourceMetadata(resource_id="/x", name="blob1", region="eastus"))

    assert est.method is EstimationMethod.UNSUPPORTED
    assert est.confidence is ConfidenceTier.NO_DATA
    assert est.total_estimated_cost == 0
    assert est.warnings == ["Unknown resource type: Unknown"]
    assert est.to_dict()["estimation_method"] == "Unsupported resource type"
