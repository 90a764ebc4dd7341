import asyncio
import signal
from pathlib import Path

from loguru import logger

from carrier_recon.core.logging import configure_logging
from carrier_recon.core.settings import settings
from carrier_recon.db.session import async_session, engine
from carrier_recon.observability.tracing import configure_tracing
from carrier_recon.scheduling.runner import ReconciliationScheduler

SERVICE_VERSION = "0.1.0"


async def run() -> None:
    configure_logging(
        service_name=settings.service_name,
        environment=settings.environment,
        version=SERVICE_VERSION,
        level=settings.log_level,
    )
    configure_tracing(service_name=settings.service_name, service_version=SERVICE_VERSION, environment=settings.environment)

    scheduler = ReconciliationScheduler(session_factory=async_session, config_path=Path(settings.worker_schedule_path))
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    scheduler.start()
    try:
        await stop_event.wait()
    finally:
        logger.info("Shutdown requested", health=scheduler.health())
        await scheduler.stop()
        await engine.dispose()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
