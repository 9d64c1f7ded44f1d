"""
Submission service - counsellor-facing lifecycle of event submissions.

Create/edit/delete write the row first, then log activity and run duplicate
detection; neither follow-up can fail the request.
"""

import logging
from datetime import date, datetime

from pydantic import ValidationError
from sqlalchemy import extract, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from staffing.db.enums import ActivityAction, EventStatus, Role, SubmissionStatus
from staffing.db.models import (
    Counsellor,
    EventName,
    EventType,
    Organizer,
    Submission,
    SubmissionAssignment,
    SubmissionSuggestion,
)
from staffing.schemas.auth import UserSession
from staffing.schemas.submission import (
    BatchItemError,
    BatchItemResult,
    SubmissionCreate,
    SubmissionFilters,
    SubmissionRead,
    SubmissionUpdate,
)
from staffing.services import activity_service, duplicate_service, staffing_service
from staffing.services.staffing_service import StaffingValidationError, SubmissionNotFoundError
from staffing.utils.date_ranges import InvalidDateRangeError, validate_range

logger = logging.getLogger(__name__)


def organizer_display(organizer: str, event_name: str, event_type: str) -> str:
    return f"{organizer} | {event_name} | {event_type}"


def _resolve_presets(db: Session, data: SubmissionCreate) -> str:
    organizer = db.get(Organizer, data.organizer_id)
    event_name = db.get(EventName, data.event_name_id)
    event_type = db.get(EventType, data.event_type_id)
    if not organizer or not event_name or not event_type:
        raise StaffingValidationError("Invalid organizer, event name, or event type selection.")
    return organizer_display(organizer.name, event_name.name, event_type.name)


def _validate_dates(data: SubmissionCreate) -> None:
    try:
        validate_range(data.start_date, data.end_date)
    except InvalidDateRangeError as e:
        raise StaffingValidationError("End date cannot be before Start date.") from e


def _replace_suggestions(db: Session, submission: Submission, suggested_ids: list[int]) -> None:
    """Suggestions are advisory; unknown or inactive ids are dropped."""
    submission.suggestions.clear()
    db.flush()
    if not suggested_ids:
        return
    valid_ids = {
        cid
        for (cid,) in db.query(Counsellor.id).filter(
            Counsellor.id.in_(suggested_ids), Counsellor.is_active.is_(True)
        )
    }
    for cid in dict.fromkeys(suggested_ids):
        if cid in valid_ids:
            submission.suggestions.append(SubmissionSuggestion(counsellor_id=cid))


def _persist(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def create_submission(
    db: Session,
    data: SubmissionCreate,
    username: str,
    ip_address: str | None = None,
    batch: bool = False,
) -> Submission:
    """
    Create a pending submission.

    Raises:
        StaffingValidationError: bad dates or unknown presets
    """
    _validate_dates(data)
    display = _resolve_presets(db, data)

    submission = Submission(
        start_date=data.start_date,
        end_date=data.end_date,
        organizer=display,
        organizer_id=data.organizer_id,
        event_name_id=data.event_name_id,
        event_type_id=data.event_type_id,
        city=data.city,
        country=data.country,
        proposed_staffing=data.proposed_staffing or None,
        remarks=data.remarks or None,
        status=SubmissionStatus.PENDING.value,
        event_status=EventStatus.ONGOING.value,
        submitted_by=username,
    )
    db.add(submission)
    try:
        db.flush()
        _replace_suggestions(db, submission, data.suggested_ids)
    except SQLAlchemyError:
        db.rollback()
        raise
    _persist(db)

    details = {
        "submission_id": submission.id,
        "city": submission.city,
        "country": submission.country,
        "start_date": submission.start_date.isoformat(),
        "end_date": submission.end_date.isoformat(),
    }
    if batch:
        details["batch"] = True
    activity_service.log_activity(db, ActivityAction.SUBMISSION_CREATED, username, details, ip_address)
    duplicate_service.detect_duplicates(db, submission.id)
    return submission


def batch_create(
    db: Session,
    events: list[dict],
    username: str,
    ip_address: str | None = None,
) -> tuple[list[BatchItemResult], list[BatchItemError]]:
    """Create each item independently; failures are reported by index."""
    results: list[BatchItemResult] = []
    errors: list[BatchItemError] = []
    for index, raw in enumerate(events):
        try:
            data = SubmissionCreate.model_validate(raw)
        except ValidationError:
            errors.append(BatchItemError(index=index, error="Missing required fields"))
            continue
        try:
            submission = create_submission(db, data, username, ip_address, batch=True)
        except StaffingValidationError as e:
            errors.append(BatchItemError(index=index, error=str(e)))
            continue
        except SQLAlchemyError:
            logger.exception("Batch item %s failed", index)
            errors.append(BatchItemError(index=index, error="Could not save submission."))
            continue
        results.append(BatchItemResult(index=index, id=submission.id))
    return results, errors


def update_submission(
    db: Session,
    submission_id: int,
    data: SubmissionUpdate,
    username: str,
    today: date | None = None,
) -> Submission:
    """
    Counsellor edit of an own submission.

    Always resets status to pending; assignments are left as they are.

    Raises:
        SubmissionNotFoundError, SubmissionForbiddenError, StaffingValidationError
    """
    submission = staffing_service.get_submission(db, submission_id)
    staffing_service.ensure_owner(submission, username)
    staffing_service.ensure_content_editable(submission, today)
    _validate_dates(data)
    display = _resolve_presets(db, data)

    submission.start_date = data.start_date
    submission.end_date = data.end_date
    submission.organizer = display
    submission.organizer_id = data.organizer_id
    submission.event_name_id = data.event_name_id
    submission.event_type_id = data.event_type_id
    submission.city = data.city
    submission.country = data.country
    submission.proposed_staffing = data.proposed_staffing or None
    submission.remarks = data.remarks or None
    staffing_service.reopen(submission)
    try:
        _replace_suggestions(db, submission, data.suggested_ids)
    except SQLAlchemyError:
        db.rollback()
        raise
    _persist(db)

    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_UPDATED,
        username,
        {"submission_id": submission_id},
    )
    return submission


def update_remarks(db: Session, submission_id: int, remarks: str | None, username: str) -> Submission:
    """Owners may change remarks at any time, whatever the status."""
    submission = staffing_service.get_submission(db, submission_id)
    staffing_service.ensure_owner(submission, username)
    submission.remarks = remarks or ""
    _persist(db)
    return submission


def delete_submission(
    db: Session,
    submission_id: int,
    session: UserSession,
    ip_address: str | None = None,
) -> None:
    """Admins delete anything; counsellors only their own."""
    submission = staffing_service.get_submission(db, submission_id)
    if session.role != Role.ADMIN:
        staffing_service.ensure_owner(submission, session.username)

    db.delete(submission)
    _persist(db)

    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_DELETED,
        session.username,
        {"submission_id": submission_id, "deleted_by_role": session.role.value},
        ip_address,
    )


# =============================================================================
# Listings
# =============================================================================


def _with_staff(query):
    return query.options(
        selectinload(Submission.assignments).selectinload(SubmissionAssignment.counsellor),
        selectinload(Submission.suggestions).selectinload(SubmissionSuggestion.counsellor),
    )


def to_read(submission: Submission) -> SubmissionRead:
    return SubmissionRead.model_validate(submission)


def list_my_submissions(db: Session, username: str, since: datetime | None = None) -> list[Submission]:
    query = _with_staff(db.query(Submission)).filter(Submission.submitted_by == username)
    if since:
        query = query.filter(Submission.updated_at > since)
    return query.order_by(Submission.start_date, Submission.id).all()


def list_my_assignments(db: Session, username: str) -> list[Submission]:
    """Confirmed, ongoing events the counsellor staffs but did not submit."""
    counsellor = db.query(Counsellor).filter(Counsellor.username == username).first()
    if not counsellor:
        raise SubmissionNotFoundError("Counsellor not found.")
    return (
        _with_staff(db.query(Submission))
        .join(SubmissionAssignment, SubmissionAssignment.submission_id == Submission.id)
        .filter(
            SubmissionAssignment.counsellor_id == counsellor.id,
            Submission.status == SubmissionStatus.CONFIRMED.value,
            Submission.event_status == EventStatus.ONGOING.value,
            Submission.submitted_by != username,
        )
        .order_by(Submission.start_date, Submission.id)
        .all()
    )


def escape_like_string(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally (escape char is a backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, value: str):
    return func.lower(column).like(f"%{escape_like_string(value.strip().lower())}%", escape="\\")


def list_submissions(db: Session, filters: SubmissionFilters) -> list[Submission]:
    """Admin listing, ordered by start date."""
    query = _with_staff(db.query(Submission))

    if filters.status and filters.status in {s.value for s in SubmissionStatus}:
        query = query.filter(Submission.status == filters.status)
    if filters.organizer and filters.organizer.strip():
        query = query.filter(_contains(Submission.organizer, filters.organizer))
    if filters.city and filters.city.strip():
        query = query.filter(_contains(Submission.city, filters.city))
    if filters.country and filters.country.strip():
        query = query.filter(_contains(Submission.country, filters.country))
    if filters.month:
        query = query.filter(
            or_(
                extract("month", Submission.start_date) == filters.month,
                extract("month", Submission.end_date) == filters.month,
            )
        )
    if filters.counsellor_id:
        assigned = db.query(SubmissionAssignment.submission_id).filter(
            SubmissionAssignment.counsellor_id == filters.counsellor_id
        )
        query = query.filter(Submission.id.in_(assigned))
    if filters.q and filters.q.strip():
        query = query.filter(
            or_(
                _contains(Submission.organizer, filters.q),
                _contains(Submission.city, filters.q),
                _contains(Submission.country, filters.q),
                _contains(Submission.remarks, filters.q),
            )
        )
    return query.order_by(Submission.start_date, Submission.id).all()
