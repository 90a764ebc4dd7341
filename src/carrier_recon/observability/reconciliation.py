"""Observability store for reconciliation worker ticks."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Mapping


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WorkerTickSnapshot:
    """Serializable snapshot of a single worker."""

    worker: str
    totals: Dict[str, int]
    ticks: int
    failed_ticks: int
    skipped_ticks: int
    last_started_at: datetime | None
    last_completed_at: datetime | None
    last_duration_seconds: float | None
    last_summary: Dict[str, int]
    last_error_at: datetime | None
    last_error: str | None

    def as_dict(self) -> Dict[str, object]:
        return {
            "worker": self.worker,
            "totals": self.totals,
            "ticks": self.ticks,
            "failed_ticks": self.failed_ticks,
            "skipped_ticks": self.skipped_ticks,
            "last_started_at": self.last_started_at.isoformat() if self.last_started_at else None,
            "last_completed_at": self.last_completed_at.isoformat() if self.last_completed_at else None,
            "last_duration_seconds": self.last_duration_seconds,
            "last_summary": self.last_summary,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
            "last_error": self.last_error,
        }


@dataclass
class ReconciliationSnapshot:
    totals: Dict[str, int]
    workers: Dict[str, WorkerTickSnapshot]

    def as_dict(self) -> Dict[str, object]:
        return {
            "totals": self.totals,
            "workers": {name: snapshot.as_dict() for name, snapshot in self.workers.items()},
        }


@dataclass
class WorkerTickState:
    worker: str
    totals: Counter = field(default_factory=Counter)
    ticks: int = 0
    failed_ticks: int = 0
    skipped_ticks: int = 0
    last_started_at: datetime | None = None
    last_completed_at: datetime | None = None
    last_duration_seconds: float | None = None
    last_summary: Dict[str, int] = field(default_factory=dict)
    last_error_at: datetime | None = None
    last_error: str | None = None

    def snapshot(self) -> WorkerTickSnapshot:
        return WorkerTickSnapshot(
            worker=self.worker,
            totals=dict(self.totals),
            ticks=self.ticks,
            failed_ticks=self.failed_ticks,
            skipped_ticks=self.skipped_ticks,
            last_started_at=self.last_started_at,
            last_completed_at=self.last_completed_at,
            last_duration_seconds=self.last_duration_seconds,
            last_summary=dict(self.last_summary),
            last_error_at=self.last_error_at,
            last_error=self.last_error,
        )


class ReconciliationObservabilityStore:
    """Tracks per-worker tick outcomes for linking and ingestion workers."""

    def __init__(self) -> None:
        self._lock: Lock = Lock()
        self._workers: Dict[str, WorkerTickState] = {}

    def reset(self) -> None:
        with self._lock:
            self._workers.clear()

    def _get_state(self, worker: str) -> WorkerTickState:
        state = self._workers.get(worker)
        if state is None:
            state = WorkerTickState(worker=worker)
            self._workers[worker] = state
        return state

    def record_tick_started(self, worker: str) -> None:
        with self._lock:
            state = self._get_state(worker)
            state.last_started_at = _utcnow()

    def record_tick_completed(self, worker: str, summary: Mapping[str, int], *, duration_seconds: float) -> None:
        with self._lock:
            state = self._get_state(worker)
            state.ticks += 1
            state.totals.update({key: value for key, value in summary.items() if value})
            state.last_summary = dict(summary)
            state.last_completed_at = _utcnow()
            state.last_duration_seconds = duration_seconds

    def record_tick_failed(self, worker: str, error: str, *, duration_seconds: float) -> None:
        with self._lock:
            state = self._get_state(worker)
            state.ticks += 1
            state.failed_ticks += 1
            state.last_completed_at = _utcnow()
            state.last_duration_seconds = duration_seconds
            state.last_error = error
            state.last_error_at = state.last_completed_at

    def record_tick_skipped(self, worker: str) -> None:
        with self._lock:
            self._get_state(worker).skipped_ticks += 1

    def snapshot(self) -> ReconciliationSnapshot:
        with self._lock:
            workers = {name: state.snapshot() for name, state in self._workers.items()}
        totals: Counter = Counter()
        for worker in workers.values():
            totals.update(worker.totals)
            totals["ticks"] += worker.ticks
            totals["failed_ticks"] += worker.failed_ticks
            totals["skipped_ticks"] += worker.skipped_ticks
        return ReconciliationSnapshot(totals=dict(totals), workers=workers)

    def worker_snapshot(self, worker: str) -> WorkerTickSnapshot | None:
        with self._lock:
            state = self._workers.get(worker)
            return state.snapshot() if state else None


_RECONCILIATION_STORE = ReconciliationObservabilityStore()


def get_reconciliation_store() -> ReconciliationObservabilityStore:
    return _RECONCILIATION_STORE


__all__ = [
    "ReconciliationObservabilityStore",
    "ReconciliationSnapshot",
    "WorkerTickSnapshot",
    "get_reconciliation_store",
]
