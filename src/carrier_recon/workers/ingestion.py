"""Worker pulling provider records into staging tables."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping

import httpx
from sqlalchemy import select, update

from carrier_recon.core.settings import settings
from carrier_recon.domain.fulfillment import PollingPolicyEnum, get_provider_profile
from carrier_recon.models.warehouse_account import ProviderKeyEnum, WarehouseAccount
from carrier_recon.observability.reconciliation import ReconciliationObservabilityStore
from carrier_recon.scheduling.policies import BusinessHoursInterval, FixedInterval, IntervalPolicy
from carrier_recon.services.ingestion.clients import ProviderClient, build_provider_client
from carrier_recon.services.ingestion.staging import StagingIngestionService
from carrier_recon.services.reconciliation.errors import ProviderClientError
from carrier_recon.services.reconciliation.operations import authorized_account_statuses
from carrier_recon.workers.base import PeriodicWorker, SessionFactory

ClientFactory = Callable[[ProviderKeyEnum, Mapping[str, Any] | None, httpx.AsyncClient], ProviderClient]
Clock = Callable[[], datetime]


def default_interval_policy(provider: ProviderKeyEnum | str) -> IntervalPolicy:
    profile = get_provider_profile(provider)
    if profile.ingestion_polling is PollingPolicyEnum.BUSINESS_HOURS:
        return BusinessHoursInterval.from_settings(settings)
    return FixedInterval(settings.ingestion_interval_seconds)


class StagingIngestionWorker(PeriodicWorker):
    """Fetches each authorized account's records and upserts them into staging."""

    def __init__(
        self,
        session_factory: SessionFactory,
        provider: ProviderKeyEnum | str,
        *,
        http_client: httpx.AsyncClient | None = None,
        client_factory: ClientFactory | None = None,
        interval_policy: IntervalPolicy | None = None,
        timeout_seconds: float | None = None,
        max_pages: int | None = None,
        store: ReconciliationObservabilityStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.profile = get_provider_profile(provider)
        super().__init__(
            session_factory,
            name=f"{self.profile.key.value}-ingestion",
            interval_policy=interval_policy or default_interval_policy(self.profile.key),
            store=store,
        )
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds or settings.ingestion_http_timeout_seconds
        self._max_pages = max_pages or settings.ingestion_max_pages
        self._client_factory = client_factory or (
            lambda key, credentials, http: build_provider_client(
                key, credentials, http_client=http, max_pages=self._max_pages
            )
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _tick(self) -> Dict[str, int]:
        summary: Counter = Counter(
            {"accounts": 0, "failed_accounts": 0, "fetched": 0, "inserted": 0, "updated": 0, "unchanged": 0, "rejected": 0}
        )
        client = self._http_client or httpx.AsyncClient(timeout=self._timeout_seconds)
        owns_client = self._http_client is None

        try:
            session = await self._ensure_session()
            async with session as db:
                stmt = (
                    select(WarehouseAccount.id, WarehouseAccount.credentials, WarehouseAccount.last_sync_at)
                    .where(
                        WarehouseAccount.provider_key == self.profile.key,
                        WarehouseAccount.status.in_(
                            authorized_account_statuses(self.profile.include_pending_accounts)
                        ),
                    )
                    .order_by(WarehouseAccount.created_at.asc())
                )
                accounts = (await db.execute(stmt)).all()
                await db.rollback()

                for account_id, credentials, last_sync_at in accounts:
                    summary["accounts"] += 1
                    started_at = self._clock()
                    try:
                        provider_client = self._client_factory(self.profile.key, credentials, client)
                        records = await provider_client.fetch_records(since=last_sync_at)
                        service = StagingIngestionService(db, self.profile.key)
                        counts = await service.ingest(account_id, records)
                        await db.execute(
                            update(WarehouseAccount)
                            .where(WarehouseAccount.id == account_id)
                            .values(last_sync_at=started_at)
                        )
                        await db.commit()
                    except ProviderClientError as exc:
                        await db.rollback()
                        summary["failed_accounts"] += 1
                        self._log.warning(
                            "Provider fetch failed for account",
                            account_id=str(account_id),
                            status_code=exc.status_code,
                            error=str(exc),
                        )
                        continue
                    except Exception as exc:
                        await db.rollback()
                        summary["failed_accounts"] += 1
                        self._log.exception("Staging ingestion failed for account", account_id=str(account_id), error=str(exc))
                        continue

                    summary["fetched"] += len(records)
                    summary.update(counts)
        finally:
            if owns_client:
                await client.aclose()

        return dict(summary)


__all__ = ["StagingIngestionWorker", "default_interval_policy"]
