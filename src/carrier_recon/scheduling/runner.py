"""Scheduler runtime for reconciliation workers."""

from __future__ import annotations

import inspect
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from loguru import logger
from zoneinfo import ZoneInfo

from carrier_recon.core.settings import settings
from carrier_recon.observability.reconciliation import get_reconciliation_store
from carrier_recon.scheduling.config import ScheduleConfig, WorkerDefinition, load_worker_definitions
from carrier_recon.scheduling.policies import BusinessHoursInterval, FixedInterval, IntervalPolicy
from carrier_recon.workers.base import PeriodicWorker, SessionFactory
from carrier_recon.workers.ingestion import StagingIngestionWorker, default_interval_policy
from carrier_recon.workers.linking import StagingLinkingWorker


class PolicyTrigger(BaseTrigger):
    """Fire immediately, then after whatever interval the policy returns."""

    def __init__(self, policy: IntervalPolicy) -> None:
        self.policy = policy

    def get_next_fire_time(self, previous_fire_time: datetime | None, now: datetime) -> datetime:
        if previous_fire_time is None:
            return now
        return previous_fire_time + timedelta(seconds=self.policy.next_interval(previous_fire_time))

    def __str__(self) -> str:
        return f"policy[{self.policy!r}]"


def resolve_policy(definition: WorkerDefinition) -> IntervalPolicy:
    if definition.policy == "business_hours":
        return BusinessHoursInterval.from_settings(settings)
    if definition.interval_seconds:
        return FixedInterval(definition.interval_seconds)
    if definition.kind == "ingestion":
        return default_interval_policy(definition.provider)
    return FixedInterval(settings.linking_interval_seconds)


def build_worker(definition: WorkerDefinition, *, session_factory: SessionFactory) -> PeriodicWorker:
    policy = resolve_policy(definition)
    options = definition.options
    if definition.kind == "linking":
        return StagingLinkingWorker(
            session_factory,
            definition.provider,
            interval_policy=policy,
            batch_size=options.get("batch_size"),
            record_timeout_seconds=options.get("record_timeout_seconds"),
        )
    return StagingIngestionWorker(
        session_factory,
        definition.provider,
        interval_policy=policy,
        max_pages=options.get("max_pages"),
    )


class ReconciliationScheduler:
    """Register reconciliation workers with APScheduler."""

    def __init__(self, *, session_factory: SessionFactory, config_path: Path) -> None:
        self._session_factory = session_factory
        self._config_path = config_path
        self._config: ScheduleConfig | None = None
        self._scheduler: AsyncIOScheduler | None = None
        self._workers: Dict[str, PeriodicWorker] = {}
        self._definitions: Dict[str, WorkerDefinition] = {}
        self._is_running: bool = False
        self._observability = get_reconciliation_store()

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def workers(self) -> Dict[str, PeriodicWorker]:
        return dict(self._workers)

    def _is_allowed(self, definition: WorkerDefinition) -> bool:
        if definition.kind == "linking":
            return settings.linking_worker_enabled and definition.provider.value in settings.linking_providers
        return settings.ingestion_worker_enabled and definition.provider.value in settings.ingestion_providers

    def start(self, *, paused: bool = False) -> None:
        """Start the scheduler; every worker fires once right away unless ``paused``."""

        config = load_worker_definitions(self._config_path)
        timezone = ZoneInfo(config.timezone)
        scheduler = AsyncIOScheduler(timezone=timezone)

        for definition in config.enabled_workers():
            if not self._is_allowed(definition):
                logger.info(
                    "Reconciliation worker disabled by settings",
                    job_id=definition.id,
                    kind=definition.kind,
                    provider=definition.provider.value,
                )
                continue
            worker = build_worker(definition, session_factory=self._session_factory)
            scheduler.add_job(
                worker.run_once,
                trigger=PolicyTrigger(worker.interval_policy),
                id=definition.id,
                name=worker.name,
                replace_existing=True,
                coalesce=True,
                max_instances=1,
                misfire_grace_time=None,
            )
            self._workers[definition.id] = worker
            self._definitions[definition.id] = definition
            logger.info(
                "Registered reconciliation worker",
                job_id=definition.id,
                worker=worker.name,
                interval_seconds=worker.interval_seconds,
            )

        scheduler.start(paused=paused)
        self._config = config
        self._scheduler = scheduler
        self._is_running = True
        logger.info("Reconciliation scheduler started", workers=len(self._workers))

    async def stop(self) -> None:
        if not self._scheduler:
            return
        result = self._scheduler.shutdown(wait=False)
        if inspect.isawaitable(result):
            await result
        self._scheduler = None
        self._is_running = False
        logger.info("Reconciliation scheduler stopped")

    def health(self) -> dict[str, object]:
        """Return scheduler health metadata suitable for diagnostics."""

        snapshot = self._observability.snapshot()
        jobs: list[dict[str, Any]] = []
        for job_id, worker in self._workers.items():
            definition = self._definitions[job_id]
            next_run = None
            if self._scheduler is not None:
                job = self._scheduler.get_job(job_id)
                next_run = job.next_run_time.isoformat() if job and job.next_run_time else None
            jobs.append(
                {
                    "id": job_id,
                    "kind": definition.kind,
                    "provider": definition.provider.value,
                    "next_run_time": next_run,
                    **worker.health_snapshot(),
                }
            )
        return {
            "running": self._is_running,
            "configured_workers": len(self._config.workers) if self._config else 0,
            "totals": snapshot.totals,
            "jobs": jobs,
        }


__all__ = ["PolicyTrigger", "ReconciliationScheduler", "build_worker", "resolve_policy"]
