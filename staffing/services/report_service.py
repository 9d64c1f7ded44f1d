"""Weekly intelligence report."""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import exists
from sqlalchemy.orm import Session

from staffing.core.structured_logging import build_log_context
from staffing.db.enums import (
    LOCKED_EVENT_STATUSES,
    EventStatus,
    JobName,
    NotificationPriority,
    NotificationType,
    SubmissionStatus,
)
from staffing.db.models import Counsellor, Submission, SubmissionAssignment
from staffing.services import notification_service, settings_service
from staffing.utils.clock import utcnow

logger = logging.getLogger(__name__)

UPCOMING_DAYS = 30
NEXT_WEEK_DAYS = 7
AGING_AFTER = timedelta(days=7)
UNSTAFFED_ALERT = 5
AGING_ALERT = 10

REPORT_TITLE = "Weekly Intelligence Report"


def collect_report_stats(db: Session, now: datetime) -> dict[str, int]:
    today: date = now.date()
    upcoming = db.query(Submission).filter(
        Submission.status.in_([SubmissionStatus.PENDING.value, SubmissionStatus.CONFIRMED.value]),
        Submission.event_status.not_in(LOCKED_EVENT_STATUSES),
        Submission.start_date >= today,
        Submission.start_date <= today + timedelta(days=UPCOMING_DAYS),
    )
    has_assignment = exists().where(SubmissionAssignment.submission_id == Submission.id)

    return {
        "total_upcoming": upcoming.count(),
        "unstaffed_events": upcoming.filter(~has_assignment).count(),
        "aging_pending": db.query(Submission)
        .filter(
            Submission.status == SubmissionStatus.PENDING.value,
            Submission.created_at < now - AGING_AFTER,
            Submission.event_status != EventStatus.CANCELLED.value,
        )
        .count(),
        "next_week_events": db.query(Submission)
        .filter(
            Submission.status == SubmissionStatus.CONFIRMED.value,
            Submission.event_status.not_in(LOCKED_EVENT_STATUSES),
            Submission.start_date >= today,
            Submission.start_date <= today + timedelta(days=NEXT_WEEK_DAYS),
        )
        .count(),
        "active_counsellors": db.query(Counsellor).filter(Counsellor.is_active.is_(True)).count(),
    }


def build_report_message(stats: dict[str, int]) -> str:
    items = [f"{stats['total_upcoming']} total event(s) in next {UPCOMING_DAYS} days"]
    if stats["unstaffed_events"] > 0:
        items.append(f"{stats['unstaffed_events']} event(s) need staffing")
    if stats["aging_pending"] > 0:
        items.append(f"{stats['aging_pending']} event(s) pending over 7 days")
    items.append(f"{stats['next_week_events']} event(s) next week")
    items.append(f"{stats['active_counsellors']} active counsellor(s)")
    return " | ".join(items)


def generate_weekly_report(db: Session, force: bool = False, now: datetime | None = None) -> bool:
    """
    Replace the weekly report notification with a fresh one.

    Args:
        force: Bypass the weekly_report_enabled switch (manual trigger)

    Returns True when a report was written.
    """
    log_extra = build_log_context(job_name=JobName.WEEKLY_REPORT.value)
    now = now or utcnow()
    try:
        if not force and not settings_service.is_enabled(db, settings_service.WEEKLY_REPORT_ENABLED):
            logger.info("Weekly report disabled", extra=log_extra)
            return False

        stats = collect_report_stats(db, now)
        priority = (
            NotificationPriority.HIGH
            if stats["unstaffed_events"] > UNSTAFFED_ALERT or stats["aging_pending"] > AGING_ALERT
            else NotificationPriority.MEDIUM
        )
        notification_id = notification_service.create_notification(
            db,
            type=NotificationType.WEEKLY_REPORT,
            priority=priority,
            title=REPORT_TITLE,
            message=build_report_message(stats),
            metadata=stats,
            now=now,
        )
    except Exception:
        db.rollback()
        logger.exception("Error generating weekly report", extra=log_extra)
        return False

    logger.info("Weekly report generated", extra=log_extra)
    return notification_id is not None
