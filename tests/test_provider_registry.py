import pytest

from carrier_recon.domain.fulfillment import (
    MatchingStrategyEnum,
    PollingPolicyEnum,
    get_provider_profile,
    list_provider_profiles,
)
from carrier_recon.models import EuropeanFulfillmentLead, FhbOrder, ProviderKeyEnum
from carrier_recon.services.reconciliation import IdentityMatcher, TieredCarrierMatcher
from carrier_recon.workers.linking import build_matcher


def test_every_provider_has_a_profile() -> None:
    assert {profile.key for profile in list_provider_profiles()} == set(ProviderKeyEnum)


def test_profiles_select_matching_strategy_and_staging_table() -> None:
    carrier = get_provider_profile("european_fulfillment")
    fhb = get_provider_profile(ProviderKeyEnum.FHB)
    digistore = get_provider_profile(ProviderKeyEnum.DIGISTORE)

    assert carrier.staging_model is EuropeanFulfillmentLead
    assert carrier.matching_strategy is MatchingStrategyEnum.CARRIER_TIERED
    assert isinstance(build_matcher(carrier), TieredCarrierMatcher)

    assert fhb.staging_model is FhbOrder
    assert fhb.drain and fhb.include_pending_accounts
    assert isinstance(build_matcher(fhb), IdentityMatcher)

    assert digistore.ingestion_polling is PollingPolicyEnum.BUSINESS_HOURS
    assert digistore.worker_name == "digistore-linking"


def test_unknown_provider_raises_key_error() -> None:
    with pytest.raises(KeyError):
        get_provider_profile("dhl")
