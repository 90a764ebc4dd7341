"""Configuration loader for reconciliation worker schedules."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomllib

from carrier_recon.models.warehouse_account import ProviderKeyEnum

WORKER_KINDS = ("linking", "ingestion")
INTERVAL_POLICIES = ("fixed", "business_hours")


@dataclass(slots=True)
class WorkerDefinition:
    """Describe one scheduled worker."""

    id: str
    kind: str
    provider: ProviderKeyEnum
    enabled: bool = True
    policy: str | None = None
    interval_seconds: float | None = None
    options: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ScheduleConfig:
    """Root schedule configuration."""

    timezone: str
    workers: list[WorkerDefinition]

    def enabled_workers(self) -> list[WorkerDefinition]:
        return [worker for worker in self.workers if worker.enabled]


def load_worker_definitions(config_path: Path) -> ScheduleConfig:
    """Load worker definitions from a TOML schedule file.

    Entries with an unknown kind, provider or policy raise ``ValueError``;
    a typo must not silently drop a worker.
    """

    if not config_path.exists():
        raise FileNotFoundError(f"Schedule config not found: {config_path}")

    data = tomllib.loads(config_path.read_text())
    timezone = data.get("timezone", "UTC")
    entries = data.get("workers", {})
    workers: list[WorkerDefinition] = []
    for key, payload in entries.items():
        if not isinstance(payload, dict):
            continue
        worker_id = str(payload.get("id") or key)
        kind = payload.get("kind")
        if kind not in WORKER_KINDS:
            raise ValueError(f"Worker {worker_id}: kind must be one of {WORKER_KINDS}, got {kind!r}")
        try:
            provider = ProviderKeyEnum(payload.get("provider"))
        except ValueError as exc:
            raise ValueError(f"Worker {worker_id}: unknown provider {payload.get('provider')!r}") from exc
        policy = payload.get("policy")
        if policy is not None and policy not in INTERVAL_POLICIES:
            raise ValueError(f"Worker {worker_id}: policy must be one of {INTERVAL_POLICIES}, got {policy!r}")

        interval = payload.get("interval_seconds")
        options = payload.get("options", {})
        if not isinstance(options, dict):
            options = {}

        workers.append(
            WorkerDefinition(
                id=worker_id,
                kind=kind,
                provider=provider,
                enabled=bool(payload.get("enabled", True)),
                policy=policy,
                interval_seconds=float(interval) if interval else None,
                options=options,
            )
        )

    return ScheduleConfig(timezone=str(timezone), workers=workers)


__all__ = ["ScheduleConfig", "WorkerDefinition", "load_worker_definitions"]
