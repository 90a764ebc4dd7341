"""Shared loop, guard and telemetry wiring for periodic reconciliation workers."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from carrier_recon.observability.reconciliation import ReconciliationObservabilityStore, get_reconciliation_store
from carrier_recon.observability.tracing import get_tracer
from carrier_recon.scheduling.policies import IntervalPolicy
from carrier_recon.workers.guard import RunGuard

SessionFactory = Callable[[], Awaitable[AsyncSession]] | Callable[[], AsyncSession]

SKIPPED_TICK: Dict[str, int] = {"skipped_tick": 1}

_tracer = get_tracer(__name__)


class PeriodicWorker:
    """Base class; subclasses implement :meth:`_tick`.

    ``run_once`` never overlaps with itself: a call arriving while a tick is in
    flight returns :data:`SKIPPED_TICK` immediately.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        name: str,
        interval_policy: IntervalPolicy,
        store: ReconciliationObservabilityStore | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.name = name
        self.interval_policy = interval_policy
        self._store = store or get_reconciliation_store()
        self._guard = RunGuard(name)
        self._log = logger.bind(worker=name)
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.is_running: bool = False

    @property
    def interval_seconds(self) -> float:
        return self.interval_policy.next_interval()

    async def run_once(self) -> Dict[str, int]:
        if not self._guard.try_acquire():
            self._store.record_tick_skipped(self.name)
            self._log.info("Previous tick still running, skipping")
            return dict(SKIPPED_TICK)

        started = time.perf_counter()
        self._store.record_tick_started(self.name)
        try:
            with _tracer.start_as_current_span(f"{self.name}.tick"):
                summary = await self._tick()
        except Exception as exc:
            duration = time.perf_counter() - started
            self._store.record_tick_failed(self.name, str(exc), duration_seconds=duration)
            self._log.exception("Worker tick failed", error=str(exc), duration_seconds=round(duration, 3))
            raise
        finally:
            self._guard.release()

        duration = time.perf_counter() - started
        self._store.record_tick_completed(self.name, summary, duration_seconds=duration)
        self._log.info("Worker tick completed", duration_seconds=round(duration, 3), **summary)
        return summary

    async def _tick(self) -> Dict[str, int]:
        raise NotImplementedError

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        self.is_running = True
        self._log.info("Worker started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        self.is_running = False
        self._log.info("Worker stopped")

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as exc:  # pragma: no cover - logged inside run_once
                self._log.debug("Worker iteration aborted", error=str(exc))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_policy.next_interval())
            except asyncio.TimeoutError:
                continue

    async def _ensure_session(self) -> AsyncSession:
        maybe_session = self._session_factory()
        if isinstance(maybe_session, AsyncSession):
            return maybe_session
        return await maybe_session

    def health_snapshot(self) -> Dict[str, Any]:
        snapshot = self._store.worker_snapshot(self.name)
        return {
            "worker": self.name,
            "running": self.is_running,
            "tick_in_progress": self._guard.held,
            "interval_seconds": self.interval_seconds,
            "stats": snapshot.as_dict() if snapshot else None,
        }


__all__ = ["PeriodicWorker", "SKIPPED_TICK", "SessionFactory"]
