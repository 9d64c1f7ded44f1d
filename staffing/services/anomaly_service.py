"""
Anomaly detection over the activity log and recent submissions.

Rules:
- bulk deletion: one user deleting 5+ submissions within 10 minutes
- volume spike: last-hour creations >= 3x the 7-day hourly average and >= 5
- data error: a submission created in the last 24h with end before start
"""

import logging
from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffing.core.structured_logging import build_log_context
from staffing.db.enums import ActivityAction, JobName, NotificationPriority, NotificationType
from staffing.db.models import ActivityLog, Submission
from staffing.services import notification_service, settings_service
from staffing.utils.clock import utcnow

logger = logging.getLogger(__name__)

BULK_DELETE_WINDOW = timedelta(minutes=10)
BULK_DELETE_MIN = 5

SPIKE_HISTORY = timedelta(days=7)
SPIKE_WINDOW = timedelta(hours=1)
SPIKE_MULTIPLIER = 3
SPIKE_MIN = 5
DEFAULT_HOURLY_AVERAGE = 2.0

DATA_ERROR_WINDOW = timedelta(hours=24)


def detect_bulk_deletions(db: Session, now: datetime) -> int:
    delete_count = func.count(ActivityLog.id)
    rows = (
        db.query(ActivityLog.username, delete_count.label("delete_count"))
        .filter(
            ActivityLog.action == ActivityAction.SUBMISSION_DELETED.value,
            ActivityLog.created_at > now - BULK_DELETE_WINDOW,
        )
        .group_by(ActivityLog.username)
        .having(delete_count >= BULK_DELETE_MIN)
        .all()
    )
    for username, count in rows:
        notification_service.create_notification(
            db,
            type=NotificationType.ANOMALY,
            priority=NotificationPriority.CRITICAL,
            title=f"Unusual activity detected: {username}",
            message=f'User "{username}" deleted {count} submissions in the last 10 minutes.',
            metadata={"username": username, "action": "bulk_deletion", "count": count},
            now=now,
        )
    return len(rows)


def hourly_average(timestamps: list[datetime]) -> float:
    """Mean creations per hour, over hours that saw at least one creation."""
    buckets = Counter((ts.year, ts.month, ts.day, ts.hour) for ts in timestamps)
    if not buckets:
        return DEFAULT_HOURLY_AVERAGE
    return sum(buckets.values()) / len(buckets)


def detect_volume_spike(db: Session, now: datetime) -> int:
    created_filter = ActivityLog.action == ActivityAction.SUBMISSION_CREATED.value
    history = [
        created_at
        for (created_at,) in db.query(ActivityLog.created_at).filter(
            created_filter, ActivityLog.created_at > now - SPIKE_HISTORY
        )
    ]
    average = hourly_average(history)
    current = (
        db.query(func.count(ActivityLog.id))
        .filter(created_filter, ActivityLog.created_at > now - SPIKE_WINDOW)
        .scalar()
    )
    if current < average * SPIKE_MULTIPLIER or current < SPIKE_MIN:
        return 0

    notification_service.create_notification(
        db,
        type=NotificationType.ANOMALY,
        priority=NotificationPriority.MEDIUM,
        title="Unusual submission volume",
        message=f"{current} submissions in the last hour (normal average: {round(average)}).",
        metadata={"current_count": current, "average": average},
        now=now,
    )
    return 1


def detect_data_errors(db: Session, now: datetime) -> int:
    rows = (
        db.query(Submission)
        .filter(
            Submission.end_date < Submission.start_date,
            Submission.created_at > now - DATA_ERROR_WINDOW,
        )
        .order_by(Submission.id)
        .all()
    )
    for submission in rows:
        notification_service.create_notification(
            db,
            type=NotificationType.ANOMALY,
            priority=NotificationPriority.HIGH,
            title="Data entry error detected",
            message=(
                f'Event #{submission.id} "{submission.organizer}" in {submission.city} has end date '
                f"({submission.end_date.isoformat()}) before start date ({submission.start_date.isoformat()})."
            ),
            metadata={"submission_id": submission.id, "submitted_by": submission.submitted_by},
            related_submission_id=submission.id,
            now=now,
        )
    return len(rows)


def detect_anomalies(db: Session, now: datetime | None = None) -> int:
    """
    Run every anomaly rule.

    Returns anomalies found; 0 when disabled or on error.
    """
    log_extra = build_log_context(job_name=JobName.ANOMALY_DETECTION.value)
    now = now or utcnow()
    try:
        if not settings_service.is_enabled(db, settings_service.ANOMALY_DETECTION_ENABLED):
            logger.info("Anomaly detection disabled", extra=log_extra)
            return 0

        found = detect_bulk_deletions(db, now)
        found += detect_volume_spike(db, now)
        found += detect_data_errors(db, now)
    except Exception:
        db.rollback()
        logger.exception("Error detecting anomalies", extra=log_extra)
        return 0

    logger.info("Anomaly check complete, %s found", found, extra=log_extra)
    return found
