"""Apply matched staging records to canonical orders."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from loguru import logger
from sqlalchemy import false, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from carrier_recon.models.order import Order, OrderStatusEnum
from carrier_recon.models.staging import StagingModel
from carrier_recon.models.warehouse_account import ProviderKeyEnum
from carrier_recon.services.reconciliation.errors import OwnershipConflictError
from carrier_recon.services.reconciliation.matching import MatchResult
from carrier_recon.services.reconciliation.records import StagingSnapshot
from carrier_recon.services.reconciliation.status_mapping import map_provider_status


@dataclass(frozen=True, slots=True)
class LinkedOrder:
    order_id: UUID
    status: OrderStatusEnum
    tier: int | None
    method: str | None


class OrderLinker:
    """Writes carrier fields onto an order and flips the staging row.

    The ownership check and the order write are a single conditional UPDATE, so
    two providers racing for the same order cannot both claim it.
    """

    def __init__(self, provider: ProviderKeyEnum, staging_model: StagingModel) -> None:
        self.provider = provider
        self.staging_model = staging_model

    async def apply(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        match: MatchResult,
        *,
        now: datetime | None = None,
    ) -> LinkedOrder:
        if not match.matched or match.order is None:
            raise ValueError("Only matched results can be linked")

        order = match.order
        timestamp = now or datetime.now(timezone.utc)
        status = map_provider_status(self.provider, record.status)
        me = self.provider.value

        values: Dict[str, Any] = {
            "status": status,
            "carrier_imported": True,
            "carrier_matched_at": timestamp,
            "carrier_order_id": record.provider_record_id,
            "provider": me,
            "provider_data": self._merge_provider_data(order.provider_data, record, match, timestamp),
            "last_status_update": timestamp,
            "updated_at": timestamp,
        }
        if record.tracking_code:
            values["tracking_number"] = record.tracking_code

        stmt = (
            update(Order)
            .where(
                Order.id == order.id,
                or_(Order.carrier_order_id.is_(None), Order.provider == me),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount == 0:
            raise OwnershipConflictError(order.id, provider=me, owner=order.provider)

        await self.mark_processed(session, record, order_id=order.id, match=match, now=timestamp)
        logger.debug(
            "Order linked to provider record",
            provider=me,
            order_id=str(order.id),
            record_id=str(record.id),
            tier=match.tier,
            method=match.method,
            status=status.value,
        )
        return LinkedOrder(order_id=order.id, status=status, tier=match.tier, method=match.method)

    async def mark_processed(
        self,
        session: AsyncSession,
        record: StagingSnapshot,
        *,
        order_id: UUID,
        match: MatchResult,
        now: datetime,
    ) -> None:
        model = self.staging_model
        stmt = (
            update(model)
            .where(model.id == record.id, model.processed_to_orders == false())
            .values(
                processed_to_orders=True,
                linked_order_id=order_id,
                processed_at=now,
                match_tier=match.tier,
                match_method=match.method,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)

    def _merge_provider_data(
        self,
        existing: Any,
        record: StagingSnapshot,
        match: MatchResult,
        timestamp: datetime,
    ) -> Dict[str, Any]:
        merged: Dict[str, Any] = dict(existing) if isinstance(existing, dict) else {}
        entry: Dict[str, Any] = dict(record.raw_payload or {})
        entry["match"] = {
            "tier": match.tier,
            "method": match.method,
            "provider_record_id": record.provider_record_id,
            "staging_record_id": str(record.id),
            "matched_at": timestamp.isoformat(),
        }
        merged[self.provider.value] = entry
        return merged


__all__ = ["LinkedOrder", "OrderLinker"]
