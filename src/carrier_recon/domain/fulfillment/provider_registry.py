"""Static registry describing how each provider is reconciled.

Every provider in :class:`ProviderKeyEnum` must declare its profile here; the
linking and ingestion workers look the profile up once at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple

from carrier_recon.models.staging import (
    DigistoreDelivery,
    ElogyOrder,
    EuropeanFulfillmentLead,
    FhbOrder,
    StagingModel,
)
from carrier_recon.models.warehouse_account import ProviderKeyEnum


class ProviderFamilyEnum(str, Enum):
    CARRIER_LEAD = "carrier_lead"
    WAREHOUSE = "warehouse"
    DIGITAL_PRODUCT = "digital_product"


class MatchingStrategyEnum(str, Enum):
    CARRIER_TIERED = "carrier_tiered"
    IDENTITY = "identity"


class PollingPolicyEnum(str, Enum):
    FIXED = "fixed"
    BUSINESS_HOURS = "business_hours"


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    """Immutable description of one provider's reconciliation behaviour."""

    key: ProviderKeyEnum
    display_name: str
    family: ProviderFamilyEnum
    staging_model: StagingModel
    matching_strategy: MatchingStrategyEnum
    include_pending_accounts: bool = False
    drain: bool = False
    ingestion_polling: PollingPolicyEnum = PollingPolicyEnum.FIXED

    @property
    def worker_name(self) -> str:
        return f"{self.key.value}-linking"


PROVIDER_PROFILES: Mapping[ProviderKeyEnum, ProviderProfile] = MappingProxyType(
    {
        ProviderKeyEnum.EUROPEAN_FULFILLMENT: ProviderProfile(
            key=ProviderKeyEnum.EUROPEAN_FULFILLMENT,
            display_name="European Fulfillment Center",
            family=ProviderFamilyEnum.CARRIER_LEAD,
            staging_model=EuropeanFulfillmentLead,
            matching_strategy=MatchingStrategyEnum.CARRIER_TIERED,
        ),
        ProviderKeyEnum.FHB: ProviderProfile(
            key=ProviderKeyEnum.FHB,
            display_name="FHB",
            family=ProviderFamilyEnum.WAREHOUSE,
            staging_model=FhbOrder,
            matching_strategy=MatchingStrategyEnum.IDENTITY,
            include_pending_accounts=True,
            drain=True,
        ),
        ProviderKeyEnum.ELOGY: ProviderProfile(
            key=ProviderKeyEnum.ELOGY,
            display_name="eLogy",
            family=ProviderFamilyEnum.WAREHOUSE,
            staging_model=ElogyOrder,
            matching_strategy=MatchingStrategyEnum.IDENTITY,
        ),
        ProviderKeyEnum.DIGISTORE: ProviderProfile(
            key=ProviderKeyEnum.DIGISTORE,
            display_name="Digistore24",
            family=ProviderFamilyEnum.DIGITAL_PRODUCT,
            staging_model=DigistoreDelivery,
            matching_strategy=MatchingStrategyEnum.IDENTITY,
            ingestion_polling=PollingPolicyEnum.BUSINESS_HOURS,
        ),
    }
)


def get_provider_profile(provider: ProviderKeyEnum | str) -> ProviderProfile:
    """Return the registered profile, raising ``KeyError`` for unknown providers."""

    try:
        key = ProviderKeyEnum(provider)
    except ValueError as exc:
        raise KeyError(f"Unknown provider '{provider}'") from exc
    return PROVIDER_PROFILES[key]


def list_provider_profiles() -> Tuple[ProviderProfile, ...]:
    return tuple(PROVIDER_PROFILES.values())


__all__ = [
    "MatchingStrategyEnum",
    "PROVIDER_PROFILES",
    "PollingPolicyEnum",
    "ProviderFamilyEnum",
    "ProviderProfile",
    "get_provider_profile",
    "list_provider_profiles",
]
