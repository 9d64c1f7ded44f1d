"""
Staffing state machine.

    pending ──finalize──▶ confirmed ──finalize──▶ confirmed (replace-all)
    confirmed ──owner edit, today < start──▶ pending
    any ──event_status CANCELLED/POSTPONED──▶ not_applicable (assignments cleared)
    any ──reschedule──▶ pending (event_status ONGOING)

Validation always runs before any write; multi-statement transitions commit
once so a submission is never left confirmed without assignments.
"""

import logging
from datetime import date
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from staffing.core.structured_logging import build_log_context
from staffing.db.enums import (
    LOCKED_EVENT_STATUSES,
    RELEASING_EVENT_STATUSES,
    ActivityAction,
    EventStatus,
    PaymentStatus,
    SubmissionStatus,
)
from staffing.db.models import Counsellor, Submission, SubmissionAssignment
from staffing.services import activity_service, workload_service
from staffing.utils.clock import today_utc, utcnow
from staffing.utils.date_ranges import InvalidDateRangeError, validate_range

logger = logging.getLogger(__name__)


class StaffingError(Exception):
    """Base exception for staffing transitions."""


class SubmissionNotFoundError(StaffingError):
    """Submission does not exist."""


class StaffingValidationError(StaffingError):
    """Input rejected before any mutation."""


class SubmissionForbiddenError(StaffingError):
    """Caller does not own the submission."""


def get_submission(db: Session, submission_id: int) -> Submission:
    submission = db.get(Submission, submission_id)
    if not submission:
        raise SubmissionNotFoundError("Submission not found.")
    return submission


def resolve_active_counsellors(db: Session, counsellor_ids: list[int]) -> list[Counsellor]:
    """
    Load active counsellors for the given ids, all or nothing.

    Raises:
        StaffingValidationError: any id is unknown or inactive
    """
    unique_ids = list(dict.fromkeys(counsellor_ids))
    counsellors = (
        db.query(Counsellor)
        .filter(Counsellor.id.in_(unique_ids), Counsellor.is_active.is_(True))
        .all()
    )
    if len(counsellors) != len(unique_ids):
        raise StaffingValidationError("One or more selected counsellors are not active / not found.")
    by_id = {c.id: c for c in counsellors}
    return [by_id[cid] for cid in unique_ids]


def _replace_assignments(db: Session, submission: Submission, counsellors: list[Counsellor]) -> None:
    submission.assignments.clear()
    # Old rows must be gone before re-inserting the same (submission, counsellor) keys
    db.flush()
    for counsellor in counsellors:
        submission.assignments.append(SubmissionAssignment(counsellor_id=counsellor.id))


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def finalize(
    db: Session,
    submission_id: int,
    counsellor_ids: list[int],
    actor: str,
) -> Submission:
    """
    Confirm a submission with exactly the given counsellors.

    Prior assignments are replaced, never merged. Busy or partially
    available counsellors are accepted; availability is advisory only.

    Raises:
        StaffingValidationError: empty selection, locked event, or
            unknown/inactive counsellor
        SubmissionNotFoundError: unknown submission
    """
    if not counsellor_ids:
        raise StaffingValidationError("At least 1 counsellor must be selected.")

    submission = get_submission(db, submission_id)
    if submission.event_status in LOCKED_EVENT_STATUSES:
        raise StaffingValidationError("Cannot change staffing for a completed or cancelled event.")

    counsellors = resolve_active_counsellors(db, counsellor_ids)

    try:
        _replace_assignments(db, submission, counsellors)
        submission.status = SubmissionStatus.CONFIRMED.value
        submission.confirmed_at = utcnow()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "Finalized submission %s with %s counsellor(s)",
        submission_id,
        len(counsellors),
        extra=build_log_context(username=actor),
    )
    activity_service.log_activity(
        db,
        ActivityAction.STAFFING_FINALIZED,
        actor,
        {
            "submission_id": submission_id,
            "counsellor_ids": [c.id for c in counsellors],
            "counsellor_names": [c.full_name for c in counsellors],
        },
    )

    # Overload check never fails the finalize
    workload_service.check_counsellor_overload(db)
    return submission


def _normalize_choice(value: Any, allowed: type, label: str) -> str:
    candidate = str(value).upper()
    if candidate not in {item.value for item in allowed}:
        raise StaffingValidationError(f"Invalid {label}.")
    return candidate


def update_metadata(
    db: Session,
    submission_id: int,
    changes: dict[str, Any],
    actor: str,
) -> Submission:
    """
    Apply admin metadata changes.

    Only keys present in `changes` are touched. CANCELLED or POSTPONED
    clears every assignment and forces status not_applicable in the same
    commit.

    Raises:
        StaffingValidationError: invalid enum value or counsellor id
        SubmissionNotFoundError: unknown submission
    """
    submission = get_submission(db, submission_id)

    updates: dict[str, Any] = {}
    if "sent_by_counsellor_id" in changes:
        sent_by = changes["sent_by_counsellor_id"]
        if sent_by in (None, ""):
            updates["sent_by_counsellor_id"] = None
        else:
            if isinstance(sent_by, bool) or not isinstance(sent_by, int) or not db.get(Counsellor, sent_by):
                raise StaffingValidationError("Invalid counsellor id.")
            updates["sent_by_counsellor_id"] = sent_by
    if "payment_status" in changes:
        updates["payment_status"] = _normalize_choice(changes["payment_status"], PaymentStatus, "payment status")
    if "event_status" in changes:
        updates["event_status"] = _normalize_choice(changes["event_status"], EventStatus, "event status")
    if "remarks" in changes:
        updates["remarks"] = "" if changes["remarks"] is None else str(changes["remarks"])

    old_event_status = submission.event_status
    for key, value in updates.items():
        setattr(submission, key, value)

    if submission.event_status in RELEASING_EVENT_STATUSES:
        submission.assignments.clear()
        submission.status = SubmissionStatus.NOT_APPLICABLE.value

    _commit(db)

    new_event_status = updates.get("event_status")
    if new_event_status is not None and new_event_status != old_event_status:
        activity_service.log_activity(
            db,
            ActivityAction.EVENT_STATUS_CHANGED,
            actor,
            {
                "submission_id": submission_id,
                "old_status": old_event_status,
                "new_status": new_event_status,
            },
        )
    return submission


def reschedule(
    db: Session,
    submission_id: int,
    start_date: date,
    end_date: date,
    actor: str,
) -> Submission:
    """
    Move a submission to new dates and reopen it.

    Sets event_status ONGOING and status pending. Assignments are cleared
    because they were made for the old dates.

    Raises:
        StaffingValidationError: start after end
        SubmissionNotFoundError: unknown submission
    """
    try:
        validate_range(start_date, end_date)
    except InvalidDateRangeError as e:
        raise StaffingValidationError(str(e)) from e

    submission = get_submission(db, submission_id)
    old_range = (submission.start_date.isoformat(), submission.end_date.isoformat())

    submission.start_date = start_date
    submission.end_date = end_date
    submission.event_status = EventStatus.ONGOING.value
    submission.status = SubmissionStatus.PENDING.value
    submission.assignments.clear()
    _commit(db)

    activity_service.log_activity(
        db,
        ActivityAction.EVENT_RESCHEDULED,
        actor,
        {
            "submission_id": submission_id,
            "old_dates": list(old_range),
            "new_dates": [start_date.isoformat(), end_date.isoformat()],
        },
    )
    return submission


def ensure_owner(submission: Submission, username: str) -> None:
    if submission.submitted_by != username:
        raise SubmissionForbiddenError("Forbidden.")


def ensure_content_editable(submission: Submission, today: date | None = None) -> None:
    """
    A cancelled or postponed event stays released until it is rescheduled;
    a confirmed submission may only be edited strictly before its start date.

    Raises:
        StaffingValidationError: cancelled/postponed event, or confirmed
            and today >= start_date
    """
    if submission.event_status in RELEASING_EVENT_STATUSES:
        raise StaffingValidationError("Cannot edit a cancelled or postponed event; reschedule it first.")
    today = today or today_utc()
    if submission.status == SubmissionStatus.CONFIRMED.value and today >= submission.start_date:
        raise StaffingValidationError("Cannot edit a confirmed event on or after the start date.")


def reopen(submission: Submission) -> None:
    """Counsellor edits always send the decision back to pending."""
    submission.status = SubmissionStatus.PENDING.value
