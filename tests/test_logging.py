from loguru import logger

from carrier_recon.core.logging import build_log_payload

METADATA = {"service_name": "carrier-recon", "environment": "development", "version": "0.1.0"}


def test_bound_worker_context_is_flattened_into_payload() -> None:
    captured = []
    handler_id = logger.add(lambda message: captured.append(build_log_payload(message.record, METADATA)))
    try:
        logger.bind(worker="fhb-linking").warning("Ambiguous match", provider="fhb", candidates=2)
    finally:
        logger.remove(handler_id)

    payload = captured[-1]
    assert payload["message"] == "Ambiguous match"
    assert payload["level"] == "warning"
    assert payload["service"] == "carrier-recon"
    assert payload["worker"] == "fhb-linking"
    assert payload["provider"] == "fhb"
    assert payload["candidates"] == 2
    assert "exception" not in payload
    assert "trace_id" not in payload


def test_exceptions_are_summarized() -> None:
    captured = []
    handler_id = logger.add(lambda message: captured.append(build_log_payload(message.record, METADATA)))
    try:
        try:
            raise RuntimeError("carrier api down")
        except RuntimeError:
            logger.exception("Worker tick failed")
    finally:
        logger.remove(handler_id)

    assert captured[-1]["exception"] == {"type": "RuntimeError", "message": "carrier api down"}
