from carrier_recon.observability.reconciliation import ReconciliationObservabilityStore


def test_store_accumulates_worker_ticks() -> None:
    store = ReconciliationObservabilityStore()

    store.record_tick_started("fhb-linking")
    store.record_tick_completed("fhb-linking", {"processed": 3, "unmatched": 0}, duration_seconds=0.4)
    store.record_tick_completed("fhb-linking", {"processed": 2, "unmatched": 1}, duration_seconds=0.2)
    store.record_tick_skipped("fhb-linking")
    store.record_tick_failed("elogy-linking", "boom", duration_seconds=0.1)

    snapshot = store.snapshot()

    assert snapshot.totals["processed"] == 5
    assert snapshot.totals["unmatched"] == 1
    assert snapshot.totals["ticks"] == 3
    assert snapshot.totals["failed_ticks"] == 1
    assert snapshot.totals["skipped_ticks"] == 1

    fhb = snapshot.workers["fhb-linking"]
    assert fhb.last_summary == {"processed": 2, "unmatched": 1}
    assert fhb.last_duration_seconds == 0.2
    assert fhb.last_started_at is not None

    elogy = store.worker_snapshot("elogy-linking").as_dict()
    assert elogy["last_error"] == "boom"
    assert elogy["last_error_at"] is not None


def test_store_reset_clears_workers() -> None:
    store = ReconciliationObservabilityStore()
    store.record_tick_completed("digistore-ingestion", {"inserted": 4}, duration_seconds=1.0)

    store.reset()

    assert store.snapshot().as_dict() == {"totals": {}, "workers": {}}
    assert store.worker_snapshot("digistore-ingestion") is None
