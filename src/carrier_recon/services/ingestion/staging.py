"""Write validated provider records into the provider's staging table."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Mapping
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carrier_recon.domain.fulfillment import get_provider_profile
from carrier_recon.models.warehouse_account import ProviderKeyEnum
from carrier_recon.services.ingestion.payloads import StagingPayload, parse_provider_record
from carrier_recon.services.reconciliation.errors import PayloadValidationError


class UpsertOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class StagingIngestionService:
    """Idempotent upsert keyed by ``(account_id, provider_record_id)``.

    A changed payload re-opens the row for linking; an identical one is left
    alone so already linked rows are not re-applied. Ingestion never marks a
    row as processed.
    """

    def __init__(self, session: AsyncSession, provider: ProviderKeyEnum | str) -> None:
        self._session = session
        self.profile = get_provider_profile(provider)

    async def upsert(self, account_id: UUID, payload: StagingPayload) -> UpsertOutcome:
        model = self.profile.staging_model
        stmt = select(model).where(
            model.account_id == account_id,
            model.provider_record_id == payload.provider_record_id,
        )
        existing = (await self._session.execute(stmt)).scalar_one_or_none()
        values = payload.column_values()

        if existing is None:
            self._session.add(model(account_id=account_id, processed_to_orders=False, **values))
            await self._session.flush()
            return UpsertOutcome.INSERTED

        if existing.raw_payload == values["raw_payload"]:
            return UpsertOutcome.UNCHANGED

        for column, value in values.items():
            setattr(existing, column, value)
        existing.processed_to_orders = False
        await self._session.flush()
        logger.debug(
            "Staging record changed, reopened for linking",
            provider=self.profile.key.value,
            record_id=str(existing.id),
            provider_record_id=payload.provider_record_id,
        )
        return UpsertOutcome.UPDATED

    async def ingest(self, account_id: UUID, raw_records: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
        """Validate and upsert a batch; invalid records are counted and skipped."""

        summary = {outcome.value: 0 for outcome in UpsertOutcome}
        summary["rejected"] = 0
        for raw in raw_records:
            try:
                payload = parse_provider_record(self.profile.key, raw)
            except PayloadValidationError as exc:
                summary["rejected"] += 1
                logger.warning(
                    "Rejected provider record",
                    provider=self.profile.key.value,
                    account_id=str(account_id),
                    error=str(exc),
                )
                continue
            outcome = await self.upsert(account_id, payload)
            summary[outcome.value] += 1
        return summary


__all__ = ["StagingIngestionService", "UpsertOutcome"]
