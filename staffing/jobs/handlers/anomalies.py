"""Anomaly detection job handler."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from staffing.services import anomaly_service

logger = logging.getLogger(__name__)


async def process_anomaly_detection(db, job) -> int:
    """Scan recent activity for bulk deletions, volume spikes and bad date ranges."""
    logger.info("Processing anomaly detection (run %s)", job.run_id)
    return await run_in_threadpool(anomaly_service.detect_anomalies, db, now=job.scheduled_for)
