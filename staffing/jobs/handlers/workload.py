"""Counsellor overload job handler."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from staffing.services import workload_service

logger = logging.getLogger(__name__)


async def process_counsellor_overload(db, job) -> int:
    logger.info("Processing counsellor overload check (run %s)", job.run_id)
    return await run_in_threadpool(workload_service.check_counsellor_overload, db, today=job.today)
