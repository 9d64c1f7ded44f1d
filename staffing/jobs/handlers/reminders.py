"""Event reminder job handler."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from staffing.services import reminder_service

logger = logging.getLogger(__name__)


async def process_event_reminders(db, job) -> int:
    """Notify admins about upcoming events that are still pending or unassigned."""
    logger.info("Processing event reminders (run %s)", job.run_id)
    return await run_in_threadpool(reminder_service.check_event_reminders, db, today=job.today)
