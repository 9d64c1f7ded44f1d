"""Event reminders for upcoming events that still need staffing."""

import logging
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from staffing.core.structured_logging import build_log_context
from staffing.db.enums import (
    LOCKED_EVENT_STATUSES,
    JobName,
    NotificationPriority,
    NotificationType,
    SubmissionStatus,
)
from staffing.db.models import Submission, SubmissionAssignment
from staffing.services import notification_service, settings_service
from staffing.utils.clock import today_utc

logger = logging.getLogger(__name__)

LOOKAHEAD_DAYS = 30


def reminder_priority(days_until: int) -> NotificationPriority | None:
    """Closer events are more urgent; nothing beyond the 30-day horizon."""
    if days_until <= 1:
        return NotificationPriority.CRITICAL
    if days_until <= 7:
        return NotificationPriority.HIGH
    if days_until <= 14:
        return NotificationPriority.MEDIUM
    if days_until <= LOOKAHEAD_DAYS:
        return NotificationPriority.LOW
    return None


def is_reminder_day(days_until: int, milestones: list[int]) -> bool:
    """True when days_until is at a milestone (at or before it, after the day preceding it)."""
    return any(milestone - 1 < days_until <= milestone for milestone in milestones)


def _issues(status: str, assignment_count: int) -> list[str]:
    issues = []
    if status == SubmissionStatus.PENDING.value:
        issues.append("not confirmed")
    if assignment_count == 0:
        issues.append("no staff assigned")
    return issues


def check_event_reminders(db: Session, today: date | None = None) -> int:
    """
    Remind admins about events at a reminder milestone that are pending or unstaffed.

    Returns reminders raised; 0 when disabled or on error.
    """
    log_extra = build_log_context(job_name=JobName.EVENT_REMINDERS.value)
    today = today or today_utc()
    created = 0
    try:
        if not settings_service.is_enabled(db, settings_service.EVENT_REMINDER_ENABLED):
            logger.info("Event reminders disabled", extra=log_extra)
            return 0

        milestones = settings_service.get_int_list(db, settings_service.EVENT_REMINDER_DAYS)
        assignment_count = (
            select(func.count())
            .select_from(SubmissionAssignment)
            .where(SubmissionAssignment.submission_id == Submission.id)
            .correlate(Submission)
            .scalar_subquery()
        )
        events = (
            db.query(Submission, assignment_count.label("assignment_count"))
            .filter(
                Submission.event_status.not_in(LOCKED_EVENT_STATUSES),
                Submission.start_date >= today,
                Submission.start_date <= today + timedelta(days=LOOKAHEAD_DAYS),
            )
            .order_by(Submission.start_date, Submission.id)
            .all()
        )

        for event, count in events:
            days = (event.start_date - today).days
            if not is_reminder_day(days, milestones):
                continue
            issues = _issues(event.status, count)
            if not issues:
                continue
            priority = reminder_priority(days)
            if priority is None:
                continue

            notification_service.create_notification(
                db,
                type=NotificationType.EVENT_REMINDER,
                priority=priority,
                title=f"Event in {days} day{'' if days == 1 else 's'} needs attention",
                message=(
                    f'"{event.organizer}" in {event.city}, {event.country} '
                    f"({event.start_date.isoformat()} to {event.end_date.isoformat()}) "
                    f"is {' and '.join(issues)}."
                ),
                metadata={"submission_id": event.id, "days_until": days, "issues": issues},
                related_submission_id=event.id,
            )
            created += 1
    except Exception:
        db.rollback()
        logger.exception("Error checking event reminders", extra=log_extra)
        return 0

    logger.info("Created %s event reminders", created, extra=log_extra)
    return created
