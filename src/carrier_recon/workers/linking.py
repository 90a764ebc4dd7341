"""Linking worker applying provider staging records to canonical orders."""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Sequence
from uuid import UUID

from sqlalchemy import and_, false, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from carrier_recon.core.settings import settings
from carrier_recon.domain.fulfillment import MatchingStrategyEnum, ProviderProfile, get_provider_profile
from carrier_recon.models.warehouse_account import ProviderKeyEnum
from carrier_recon.observability.reconciliation import ReconciliationObservabilityStore
from carrier_recon.scheduling.policies import FixedInterval, IntervalPolicy
from carrier_recon.services.reconciliation import (
    AccountOperationsCache,
    IdentityMatcher,
    OrderLinker,
    OrderMatcher,
    OwnershipConflictError,
    StagingSnapshot,
    TieredCarrierMatcher,
    build_account_operations_cache,
    resolve_operation,
)
from carrier_recon.workers.base import PeriodicWorker, SessionFactory

Clock = Callable[[], datetime]


class RecordOutcome(str, Enum):
    LINKED = "linked"
    UNMATCHED = "unmatched"
    AMBIGUOUS = "ambiguous"
    UNAUTHORIZED = "unauthorized"


SUMMARY_KEYS = (
    "examined",
    "processed",
    "created",
    "updated",
    "skipped",
    "unmatched",
    "ambiguous",
    "conflicts",
    "unauthorized",
    "failed",
    "timed_out",
    "fallback_operations",
    "batches",
)


def build_matcher(profile: ProviderProfile) -> OrderMatcher:
    if profile.matching_strategy is MatchingStrategyEnum.CARRIER_TIERED:
        return TieredCarrierMatcher(price_tolerance=settings.linking_price_tolerance)
    if profile.matching_strategy is MatchingStrategyEnum.IDENTITY:
        return IdentityMatcher(phone_scan_window=settings.linking_phone_scan_window)
    raise ValueError(f"Unsupported matching strategy {profile.matching_strategy!r}")


class StagingLinkingWorker(PeriodicWorker):
    """Links one provider's unprocessed staging rows to existing orders.

    Orders are never created here; unmatched rows stay unprocessed and are
    retried on the next tick.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        provider: ProviderKeyEnum | str,
        *,
        matcher: OrderMatcher | None = None,
        interval_seconds: float | None = None,
        interval_policy: IntervalPolicy | None = None,
        batch_size: int | None = None,
        record_timeout_seconds: float | None = None,
        store: ReconciliationObservabilityStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.profile = get_provider_profile(provider)
        policy = interval_policy or FixedInterval(interval_seconds or settings.linking_interval_seconds)
        super().__init__(session_factory, name=self.profile.worker_name, interval_policy=policy, store=store)
        default_batch = settings.linking_drain_batch_size if self.profile.drain else settings.linking_batch_size
        self.batch_size = batch_size or default_batch
        self.record_timeout_seconds = record_timeout_seconds or settings.linking_record_timeout_seconds
        self._matcher = matcher or build_matcher(self.profile)
        self._linker = OrderLinker(self.profile.key, self.profile.staging_model)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._resume_after: tuple[datetime, UUID] | None = None

    @property
    def provider(self) -> ProviderKeyEnum:
        return self.profile.key

    async def _tick(self) -> Dict[str, int]:
        summary: Counter = Counter({key: 0 for key in SUMMARY_KEYS})
        session = await self._ensure_session()
        async with session as db:
            cache = await build_account_operations_cache(
                db,
                self.provider,
                include_pending=self.profile.include_pending_accounts,
            )
            account_ids = cache.account_ids
            if not account_ids:
                self._log.info("No authorized accounts, nothing to link")
                return dict(summary)

            # single-batch providers resume where the previous tick stopped
            cursor = None if self.profile.drain else self._resume_after
            wrapped = cursor is None
            while True:
                records = await self._fetch_batch(db, account_ids, after=cursor)
                # end the read transaction before per-record work starts
                await db.rollback()
                if not records:
                    if wrapped:
                        break
                    cursor = self._resume_after = None
                    wrapped = True
                    continue
                summary["batches"] += 1

                for record in records:
                    summary["examined"] += 1
                    outcome = await self._process_isolated(db, record, cache, summary)
                    if outcome is not None:
                        summary[outcome] += 1

                last = records[-1]
                cursor = (last.created_at, last.id)
                full_batch = len(records) >= self.batch_size
                if self.profile.drain:
                    if not full_batch:
                        break
                    continue
                self._resume_after = cursor if full_batch else None
                break

        summary["skipped"] = (
            summary["unmatched"]
            + summary["ambiguous"]
            + summary["conflicts"]
            + summary["unauthorized"]
            + summary["failed"]
            + summary["timed_out"]
        )
        return dict(summary)

    async def _fetch_batch(
        self,
        db: AsyncSession,
        account_ids: Sequence[UUID],
        *,
        after: tuple[datetime, UUID] | None = None,
    ) -> list[StagingSnapshot]:
        model = self.profile.staging_model
        stmt = (
            select(model)
            .where(model.processed_to_orders == false(), model.account_id.in_(account_ids))
            .order_by(model.created_at.asc(), model.id.asc())
            .limit(self.batch_size)
            .execution_options(populate_existing=True)
        )
        if after is not None:
            created_at, record_id = after
            stmt = stmt.where(
                or_(
                    model.created_at > created_at,
                    and_(model.created_at == created_at, model.id > record_id),
                )
            )
        result = await db.execute(stmt)
        return [StagingSnapshot.from_row(row) for row in result.scalars().all()]

    async def _process_isolated(
        self,
        db: AsyncSession,
        record: StagingSnapshot,
        cache: AccountOperationsCache,
        summary: Counter,
    ) -> str | None:
        try:
            outcome = await asyncio.wait_for(
                self._process_record(db, record, cache, summary),
                timeout=self.record_timeout_seconds,
            )
        except asyncio.TimeoutError:
            await db.rollback()
            self._log.warning(
                "Staging record timed out, will retry next tick",
                record_id=str(record.id),
                provider_record_id=record.provider_record_id,
                timeout_seconds=self.record_timeout_seconds,
            )
            return "timed_out"
        except OwnershipConflictError as exc:
            await db.rollback()
            self._log.warning(
                "Order owned by another provider, skipping update",
                record_id=str(record.id),
                provider_record_id=record.provider_record_id,
                order_id=str(exc.order_id),
                owner=exc.owner,
            )
            return "conflicts"
        except Exception as exc:
            await db.rollback()
            self._log.exception(
                "Staging record failed, will retry next tick",
                record_id=str(record.id),
                provider_record_id=record.provider_record_id,
                error=str(exc),
            )
            return "failed"

        if outcome is RecordOutcome.LINKED:
            try:
                await db.commit()
            except Exception as exc:
                await db.rollback()
                self._log.exception(
                    "Commit failed for linked record, will retry next tick",
                    record_id=str(record.id),
                    provider_record_id=record.provider_record_id,
                    error=str(exc),
                )
                return "failed"
            summary["updated"] += 1
            return "processed"

        await db.rollback()
        return outcome.value

    async def _process_record(
        self,
        db: AsyncSession,
        record: StagingSnapshot,
        cache: AccountOperationsCache,
        summary: Counter,
    ) -> RecordOutcome:
        resolution = resolve_operation(record.order_number_hint, cache.operations_for(record.account_id))
        if resolution is None:
            self._log.warning(
                "No operation authorized for account, skipping record",
                record_id=str(record.id),
                account_id=str(record.account_id),
            )
            return RecordOutcome.UNAUTHORIZED
        if resolution.via_fallback:
            summary["fallback_operations"] += 1

        match = await self._matcher.match(db, record, resolution.operation)
        if not match.matched:
            self._log.debug(
                "No order matched staging record",
                record_id=str(record.id),
                provider_record_id=record.provider_record_id,
                operation_id=str(resolution.operation.id),
                ambiguous=match.ambiguous,
            )
            return RecordOutcome.AMBIGUOUS if match.ambiguous else RecordOutcome.UNMATCHED

        await self._linker.apply(db, record, match, now=self._clock())
        return RecordOutcome.LINKED


__all__ = ["RecordOutcome", "StagingLinkingWorker", "build_matcher"]
