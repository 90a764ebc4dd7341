"""Exceptions raised by the reconciliation services."""

from __future__ import annotations


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class OwnershipConflictError(ReconciliationError):
    """Raised when an order is already claimed by a different provider."""

    def __init__(self, order_id: object, *, provider: str, owner: str | None) -> None:
        super().__init__(f"Order {order_id} is owned by {owner or 'another provider'}, not {provider}")
        self.order_id = order_id
        self.provider = provider
        self.owner = owner


class ProviderClientError(ReconciliationError):
    """Raised when a provider API call fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PayloadValidationError(ReconciliationError):
    """Raised when a raw provider payload cannot be converted into a staging record."""


__all__ = [
    "OwnershipConflictError",
    "PayloadValidationError",
    "ProviderClientError",
    "ReconciliationError",
]
