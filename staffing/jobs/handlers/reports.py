"""Weekly report job handler."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from staffing.services import report_service

logger = logging.getLogger(__name__)


async def process_weekly_report(db, job) -> bool:
    """
    Replace the weekly intelligence report.

    Payload:
        - force: bypass the weekly_report_enabled switch (manual trigger)
    """
    payload = job.payload or {}
    force = bool(payload.get("force", False))
    logger.info("Processing weekly report (run %s, force=%s)", job.run_id, force)
    return await run_in_threadpool(
        report_service.generate_weekly_report, db, force=force, now=job.scheduled_for
    )
