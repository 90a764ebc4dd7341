"""Detached views of staging rows passed through the matching pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from carrier_recon.models.staging import StagingRecordMixin


@dataclass(frozen=True, slots=True)
class StagingSnapshot:
    """Immutable copy of a staging row.

    Workers convert fetched rows into snapshots straight away so that a
    per-record rollback never expires state the rest of the batch relies on.
    """

    id: UUID
    account_id: UUID
    provider_record_id: str
    order_number_hint: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_city: str | None = None
    order_value: Decimal | None = None
    status: str | None = None
    tracking_code: str | None = None
    raw_payload: Mapping[str, Any] | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: StagingRecordMixin) -> "StagingSnapshot":
        return cls(
            id=row.id,
            account_id=row.account_id,
            provider_record_id=row.provider_record_id,
            order_number_hint=row.order_number_hint,
            customer_name=row.customer_name,
            customer_email=row.customer_email,
            customer_phone=row.customer_phone,
            customer_city=row.customer_city,
            order_value=row.order_value,
            status=row.status,
            tracking_code=row.tracking_code,
            raw_payload=dict(row.raw_payload) if isinstance(row.raw_payload, Mapping) else None,
            created_at=row.created_at,
        )


__all__ = ["StagingSnapshot"]
