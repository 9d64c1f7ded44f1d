"""Counsellor overload detection."""

import logging
from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from staffing.core.structured_logging import build_log_context
from staffing.db.enums import (
    LOCKED_EVENT_STATUSES,
    JobName,
    NotificationPriority,
    NotificationType,
    SubmissionStatus,
)
from staffing.db.models import Counsellor, Submission, SubmissionAssignment
from staffing.services import notification_service, settings_service
from staffing.utils.clock import today_utc

logger = logging.getLogger(__name__)

LOOKAHEAD_DAYS = 30
ESCALATION_MARGIN = 2


def _upcoming_confirmed_filters(today: date) -> tuple:
    return (
        Submission.status == SubmissionStatus.CONFIRMED.value,
        Submission.event_status.not_in(LOCKED_EVENT_STATUSES),
        Submission.start_date >= today,
        Submission.start_date <= today + timedelta(days=LOOKAHEAD_DAYS),
    )


def find_overloaded_counsellors(db: Session, threshold: int, today: date) -> list[dict]:
    """Active counsellors with at least `threshold` confirmed events starting in the next 30 days."""
    event_count = func.count(distinct(Submission.id))
    rows = (
        db.query(Counsellor.id, Counsellor.username, Counsellor.full_name, event_count.label("event_count"))
        .join(SubmissionAssignment, SubmissionAssignment.counsellor_id == Counsellor.id)
        .join(Submission, Submission.id == SubmissionAssignment.submission_id)
        .filter(Counsellor.is_active.is_(True), *_upcoming_confirmed_filters(today))
        .group_by(Counsellor.id, Counsellor.username, Counsellor.full_name)
        .having(event_count >= threshold)
        .order_by(Counsellor.id)
        .all()
    )
    if not rows:
        return []

    events: dict[int, list[str]] = defaultdict(list)
    event_rows = (
        db.query(SubmissionAssignment.counsellor_id, Submission.city, Submission.start_date)
        .join(Submission, Submission.id == SubmissionAssignment.submission_id)
        .filter(
            SubmissionAssignment.counsellor_id.in_([row.id for row in rows]),
            *_upcoming_confirmed_filters(today),
        )
        .order_by(Submission.start_date, Submission.id)
    )
    for counsellor_id, city, start_date in event_rows:
        events[counsellor_id].append(f"{city} ({start_date.isoformat()})")

    return [
        {
            "counsellor_id": row.id,
            "username": row.username,
            "full_name": row.full_name,
            "event_count": row.event_count,
            "events": events[row.id],
        }
        for row in rows
    ]


def check_counsellor_overload(db: Session, today: date | None = None) -> int:
    """
    Raise a staffing warning per overloaded counsellor.

    Returns the number of overloaded counsellors; 0 when disabled or on error.
    """
    log_extra = build_log_context(job_name=JobName.COUNSELLOR_OVERLOAD.value)
    try:
        if not settings_service.is_enabled(db, settings_service.STAFFING_WARNING_ENABLED):
            logger.info("Counsellor overload check disabled", extra=log_extra)
            return 0

        threshold = settings_service.get_int(db, settings_service.COUNSELLOR_OVERLOAD_THRESHOLD)
        overloaded = find_overloaded_counsellors(db, threshold, today or today_utc())

        for item in overloaded:
            priority = (
                NotificationPriority.HIGH
                if item["event_count"] >= threshold + ESCALATION_MARGIN
                else NotificationPriority.MEDIUM
            )
            notification_service.create_notification(
                db,
                type=NotificationType.STAFFING_WARNING,
                priority=priority,
                title=f"Counsellor workload alert: {item['full_name']}",
                message=(
                    f"{item['full_name']} has {item['event_count']} events in the next "
                    f"{LOOKAHEAD_DAYS} days. Events: {', '.join(item['events'])}"
                ),
                metadata={"counsellor_id": item["counsellor_id"], "event_count": item["event_count"]},
            )
    except Exception:
        db.rollback()
        logger.exception("Error checking counsellor overload", extra=log_extra)
        return 0

    logger.info("Found %s overloaded counsellors", len(overloaded), extra=log_extra)
    return len(overloaded)
