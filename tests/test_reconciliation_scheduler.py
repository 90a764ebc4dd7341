from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from carrier_recon.core.settings import settings
from carrier_recon.models import ProviderKeyEnum
from carrier_recon.scheduling import BusinessHoursInterval, FixedInterval, load_worker_definitions
from carrier_recon.scheduling.runner import PolicyTrigger, ReconciliationScheduler, build_worker, resolve_policy
from carrier_recon.workers import StagingIngestionWorker, StagingLinkingWorker

SCHEDULE = """
timezone = "UTC"

[workers.fhb_linking]
kind = "linking"
provider = "fhb"
interval_seconds = 60
options = { batch_size = 250 }

[workers.elogy_linking]
kind = "linking"
provider = "elogy"

[workers.digistore_ingestion]
kind = "ingestion"
provider = "digistore"
policy = "business_hours"

[workers.paused_ingestion]
kind = "ingestion"
provider = "elogy"
enabled = false
"""


def _write_schedule(tmp_path: Path, body: str = SCHEDULE) -> Path:
    path = tmp_path / "workers.toml"
    path.write_text(body)
    return path


@pytest.mark.parametrize(
    ("moment", "expected"),
    [
        (datetime(2026, 3, 2, 7, 59, 59, tzinfo=timezone.utc), 900.0),
        (datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc), 300.0),
        (datetime(2026, 3, 2, 19, 59, 59, tzinfo=timezone.utc), 300.0),
        (datetime(2026, 3, 2, 20, 0, tzinfo=timezone.utc), 900.0),
    ],
)
def test_business_hours_interval_boundaries(moment, expected) -> None:
    assert BusinessHoursInterval().next_interval(moment) == expected


def test_business_hours_window_can_wrap_midnight() -> None:
    policy = BusinessHoursInterval(start_hour=22, end_hour=6)

    assert policy.in_business_hours(datetime(2026, 3, 2, 23, 0, tzinfo=timezone.utc))
    assert policy.in_business_hours(datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc))
    assert not policy.in_business_hours(datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc))


def test_business_hours_interval_rejects_invalid_values() -> None:
    with pytest.raises(ValueError):
        BusinessHoursInterval(start_hour=25)
    with pytest.raises(ValueError):
        BusinessHoursInterval(business_seconds=0)


def test_policy_trigger_fires_now_then_after_interval() -> None:
    trigger = PolicyTrigger(FixedInterval(90))
    now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    first = trigger.get_next_fire_time(None, now)
    second = trigger.get_next_fire_time(first, now)

    assert first == now
    assert second == now + timedelta(seconds=90)


def test_load_worker_definitions(tmp_path) -> None:
    config = load_worker_definitions(_write_schedule(tmp_path))

    assert config.timezone == "UTC"
    assert [worker.id for worker in config.enabled_workers()] == [
        "fhb_linking",
        "elogy_linking",
        "digistore_ingestion",
    ]
    fhb = config.workers[0]
    assert fhb.provider is ProviderKeyEnum.FHB
    assert fhb.interval_seconds == 60.0
    assert fhb.options == {"batch_size": 250}


@pytest.mark.parametrize(
    "body",
    [
        '[workers.bad]\nkind = "replay"\nprovider = "fhb"\n',
        '[workers.bad]\nkind = "linking"\nprovider = "dhl"\n',
        '[workers.bad]\nkind = "linking"\nprovider = "fhb"\npolicy = "cron"\n',
    ],
)
def test_load_worker_definitions_rejects_unknown_values(tmp_path, body) -> None:
    with pytest.raises(ValueError):
        load_worker_definitions(_write_schedule(tmp_path, body))


def test_load_worker_definitions_requires_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_worker_definitions(tmp_path / "missing.toml")


def _unused_session_factory():
    raise AssertionError("workers are not run in this test")


def test_build_worker_applies_definition(tmp_path) -> None:
    session_factory = _unused_session_factory
    config = load_worker_definitions(_write_schedule(tmp_path))
    fhb, elogy, digistore = config.enabled_workers()

    fhb_worker = build_worker(fhb, session_factory=session_factory)
    elogy_worker = build_worker(elogy, session_factory=session_factory)
    digistore_worker = build_worker(digistore, session_factory=session_factory)

    assert isinstance(fhb_worker, StagingLinkingWorker)
    assert fhb_worker.batch_size == 250
    assert fhb_worker.interval_seconds == 60.0
    assert elogy_worker.interval_seconds == float(settings.linking_interval_seconds)
    assert isinstance(digistore_worker, StagingIngestionWorker)
    assert isinstance(resolve_policy(digistore), BusinessHoursInterval)


@pytest.mark.asyncio
async def test_scheduler_registers_only_allowed_workers(tmp_path, session_factory, monkeypatch) -> None:
    monkeypatch.setattr(settings, "linking_worker_enabled", True)
    monkeypatch.setattr(settings, "linking_providers", ["fhb"])
    monkeypatch.setattr(settings, "ingestion_worker_enabled", False)

    scheduler = ReconciliationScheduler(session_factory=session_factory, config_path=_write_schedule(tmp_path))
    scheduler.start(paused=True)
    try:
        health = scheduler.health()
    finally:
        await scheduler.stop()

    assert health["running"] is True
    assert health["configured_workers"] == 4
    assert [job["id"] for job in health["jobs"]] == ["fhb_linking"]
    job = health["jobs"][0]
    assert job["worker"] == "fhb-linking"
    assert job["kind"] == "linking"
    assert job["next_run_time"] is not None
    assert scheduler.is_running is False
    assert list(scheduler.workers) == ["fhb_linking"]
