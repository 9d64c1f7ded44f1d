"""Housekeeping job handler."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from staffing.services import cleanup_service

logger = logging.getLogger(__name__)


async def process_notification_cleanup(db, job) -> dict[str, int]:
    logger.info("Processing cleanup (run %s)", job.run_id)
    return await run_in_threadpool(cleanup_service.run_cleanup, db, now=job.scheduled_for)
