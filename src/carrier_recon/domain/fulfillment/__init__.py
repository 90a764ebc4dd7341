"""Fulfillment provider domain helpers."""

from .provider_registry import (  # noqa: F401
    PROVIDER_PROFILES,
    MatchingStrategyEnum,
    PollingPolicyEnum,
    ProviderFamilyEnum,
    ProviderProfile,
    get_provider_profile,
    list_provider_profiles,
)
