"""Provider ingestion into staging tables."""

from .clients import (
    DigistoreClient,
    ElogyClient,
    EuropeanFulfillmentClient,
    FhbClient,
    ProviderClient,
    build_provider_client,
)
from .payloads import StagingPayload, parse_provider_record
from .staging import StagingIngestionService, UpsertOutcome

__all__ = [
    "DigistoreClient",
    "ElogyClient",
    "EuropeanFulfillmentClient",
    "FhbClient",
    "ProviderClient",
    "StagingIngestionService",
    "StagingPayload",
    "UpsertOutcome",
    "build_provider_client",
    "parse_provider_record",
]
