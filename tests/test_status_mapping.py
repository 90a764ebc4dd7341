import pytest

from carrier_recon.models.order import OrderStatusEnum
from carrier_recon.models.warehouse_account import ProviderKeyEnum
from carrier_recon.services.reconciliation.status_mapping import STATUS_MAPS, map_provider_status


def test_every_provider_has_a_status_map() -> None:
    assert set(STATUS_MAPS) == set(ProviderKeyEnum)


@pytest.mark.parametrize("provider", list(ProviderKeyEnum))
def test_every_vocabulary_entry_maps_to_a_canonical_status(provider) -> None:
    for raw_status, expected in STATUS_MAPS[provider].items():
        mapped = map_provider_status(provider, raw_status)
        assert mapped is expected
        assert mapped in OrderStatusEnum


@pytest.mark.parametrize(
    ("provider", "raw_status", "expected"),
    [
        (ProviderKeyEnum.EUROPEAN_FULFILLMENT, "In Transit", OrderStatusEnum.SHIPPED),
        (ProviderKeyEnum.EUROPEAN_FULFILLMENT, "unpacked", OrderStatusEnum.SHIPPED),
        (ProviderKeyEnum.EUROPEAN_FULFILLMENT, "REJECTED", OrderStatusEnum.CANCELLED),
        (ProviderKeyEnum.FHB, "processing", OrderStatusEnum.CONFIRMED),
        (ProviderKeyEnum.ELOGY, "out_for_delivery", OrderStatusEnum.SHIPPED),
        (ProviderKeyEnum.ELOGY, "in_warehouse", OrderStatusEnum.CONFIRMED),
        (ProviderKeyEnum.DIGISTORE, "partial_delivery", OrderStatusEnum.SHIPPED),
        (ProviderKeyEnum.DIGISTORE, "cancel", OrderStatusEnum.CANCELLED),
        ("fhb", " Delivered ", OrderStatusEnum.DELIVERED),
    ],
)
def test_provider_status_is_case_insensitive(provider, raw_status, expected) -> None:
    assert map_provider_status(provider, raw_status) is expected


@pytest.mark.parametrize("raw_status", [None, "", "   ", "teleported"])
def test_unknown_or_missing_status_defaults_to_pending(raw_status) -> None:
    assert map_provider_status(ProviderKeyEnum.FHB, raw_status) is OrderStatusEnum.PENDING
