"""
Background worker running the periodic detection jobs.

Usage:
    python -m staffing.worker

Runs the scheduler loop standalone. Use this when the API runs with
SCHEDULER_ENABLED=false (e.g. several API replicas).
"""

import asyncio
import logging

from staffing.core.config import settings
from staffing.core.structured_logging import build_log_context
from staffing.db.session import SessionLocal, engine
from staffing.core.migrations import ensure_migrations
from staffing.jobs.scheduler import build_runner
from staffing.services import settings_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


async def worker_loop() -> None:
    """Prepare the database, then run the scheduler until cancelled."""
    ensure_migrations(engine, settings.DB_AUTO_MIGRATE)
    with SessionLocal() as db:
        settings_service.ensure_default_settings(db)

    runner = build_runner(SessionLocal)
    if settings.SCHEDULER_INITIAL_CHECKS:
        await runner.run_initial_checks()
    await runner.run_forever(poll_seconds=settings.SCHEDULER_POLL_SECONDS)


def main() -> None:
    """Entry point for the worker."""
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker shutting down")
    except Exception:
        logger.exception(
            "Worker crashed",
            extra=build_log_context(route="worker", method="background"),
        )
        raise


if __name__ == "__main__":
    main()
