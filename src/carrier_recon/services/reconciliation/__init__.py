"""Carrier-to-order reconciliation services."""

from .errors import OwnershipConflictError, PayloadValidationError, ProviderClientError, ReconciliationError
from .linking import LinkedOrder, OrderLinker
from .matching import IdentityMatcher, MatchResult, OrderMatcher, TieredCarrierMatcher
from .operations import (
    AccountOperationsCache,
    OperationRef,
    OperationResolution,
    build_account_operations_cache,
    resolve_operation,
)
from .records import StagingSnapshot
from .status_mapping import map_provider_status

__all__ = [
    "AccountOperationsCache",
    "IdentityMatcher",
    "LinkedOrder",
    "MatchResult",
    "OperationRef",
    "OperationResolution",
    "OrderLinker",
    "OrderMatcher",
    "OwnershipConflictError",
    "PayloadValidationError",
    "ProviderClientError",
    "ReconciliationError",
    "StagingSnapshot",
    "TieredCarrierMatcher",
    "build_account_operations_cache",
    "map_provider_status",
    "resolve_operation",
]
