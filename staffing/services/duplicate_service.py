"""
Duplicate detection and admin resolution (dismiss / merge).
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from staffing.db.enums import (
    ActivityAction,
    EventStatus,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from staffing.db.models import DuplicateDismissal, Notification, Submission
from staffing.services import activity_service, notification_service, settings_service
from staffing.services.similarity_service import calculate_similarity
from staffing.utils.clock import utcnow
from staffing.utils.date_ranges import overlap_clause

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 50
HIGH_PRIORITY_SCORE = 0.9


class DuplicateNotFoundError(Exception):
    """No duplicate_detected notification with that id."""


class DuplicateValidationError(Exception):
    """Merge target is not part of the flagged pair."""


@dataclass
class DuplicateMatch:
    existing_submission_id: int
    score: float
    factors: list[str] = field(default_factory=list)


def normalize_pair(first_id: int, second_id: int) -> tuple[int, int]:
    return (first_id, second_id) if first_id <= second_id else (second_id, first_id)


def dismissed_partner_ids(db: Session, submission_id: int) -> set[int]:
    """Ids this submission has been marked 'not a duplicate' against."""
    rows = db.query(DuplicateDismissal).filter(
        or_(
            DuplicateDismissal.submission_id_1 == submission_id,
            DuplicateDismissal.submission_id_2 == submission_id,
        )
    )
    return {
        row.submission_id_2 if row.submission_id_1 == submission_id else row.submission_id_1
        for row in rows
    }


def find_candidates(db: Session, submission: Submission) -> list[Submission]:
    """Newest 50 non-cancelled submissions sharing the country or overlapping the dates."""
    return (
        db.query(Submission)
        .filter(
            Submission.id != submission.id,
            Submission.event_status != EventStatus.CANCELLED.value,
            or_(
                func.lower(Submission.country) == submission.country.lower(),
                overlap_clause(
                    Submission.start_date, Submission.end_date, submission.start_date, submission.end_date
                ),
            ),
        )
        .order_by(Submission.created_at.desc(), Submission.id.desc())
        .limit(MAX_CANDIDATES)
        .all()
    )


def detect_duplicates(db: Session, submission_id: int) -> list[DuplicateMatch]:
    """
    Score a new submission against recent candidates and notify per match.

    Returns the matches; [] when disabled, unknown, or on error.
    """
    try:
        if not settings_service.is_enabled(db, settings_service.DUPLICATE_DETECTION_ENABLED):
            return []

        threshold = settings_service.get_float(db, settings_service.DUPLICATE_THRESHOLD)
        submission = db.get(Submission, submission_id)
        if not submission:
            return []

        dismissed = dismissed_partner_ids(db, submission_id)
        matches: list[DuplicateMatch] = []
        for candidate in find_candidates(db, submission):
            if candidate.id in dismissed:
                continue
            result = calculate_similarity(submission, candidate)
            if result.score < threshold:
                continue

            matches.append(DuplicateMatch(candidate.id, result.score, result.factors))
            notification_service.create_notification(
                db,
                type=NotificationType.DUPLICATE_DETECTED,
                priority=(
                    NotificationPriority.HIGH
                    if result.score >= HIGH_PRIORITY_SCORE
                    else NotificationPriority.MEDIUM
                ),
                title=f"Possible duplicate of event #{candidate.id}",
                message=(
                    f'New submission for "{submission.organizer}" in {submission.city} '
                    f"({submission.start_date.isoformat()}) is {round(result.score * 100)}% "
                    f"similar to existing event #{candidate.id}."
                ),
                metadata={
                    "new_submission_id": submission_id,
                    "existing_submission_id": candidate.id,
                    "score": result.score,
                    "factors": result.factors,
                },
                related_submission_id=submission_id,
            )
    except Exception:
        db.rollback()
        logger.exception("Error detecting duplicates for submission %s", submission_id)
        return []

    logger.info("Found %s potential duplicates for submission %s", len(matches), submission_id)
    return matches


def _get_duplicate_notification(db: Session, notification_id: int) -> Notification:
    notification = (
        db.query(Notification)
        .filter(
            Notification.id == notification_id,
            Notification.type == NotificationType.DUPLICATE_DETECTED.value,
        )
        .first()
    )
    if not notification or not notification.metadata_json:
        raise DuplicateNotFoundError("Duplicate notification not found.")
    return notification


def record_dismissal(db: Session, first_id: int, second_id: int, actor: str) -> None:
    """Store the unordered pair; re-dismissing is a no-op."""
    low, high = normalize_pair(first_id, second_id)
    exists = (
        db.query(DuplicateDismissal.id)
        .filter(DuplicateDismissal.submission_id_1 == low, DuplicateDismissal.submission_id_2 == high)
        .first()
    )
    if exists:
        return
    db.add(DuplicateDismissal(submission_id_1=low, submission_id_2=high, dismissed_by=actor))


def dismiss_duplicate(db: Session, notification_id: int, actor: str) -> Notification:
    """Mark a flagged pair as 'not a duplicate' and dismiss the notification."""
    notification = _get_duplicate_notification(db, notification_id)
    metadata = notification.metadata_json
    record_dismissal(db, metadata["new_submission_id"], metadata["existing_submission_id"], actor)
    notification.status = NotificationStatus.DISMISSED.value
    notification.read_at = utcnow()
    db.commit()
    return notification


def merge_duplicate(
    db: Session,
    notification_id: int,
    keep_submission_id: int,
    actor: str,
) -> int:
    """
    Keep one submission of a flagged pair and delete the other.

    Returns the deleted submission id.
    """
    notification = _get_duplicate_notification(db, notification_id)
    new_id = notification.metadata_json["new_submission_id"]
    existing_id = notification.metadata_json["existing_submission_id"]
    if keep_submission_id not in (new_id, existing_id):
        raise DuplicateValidationError("keep_submission_id must be one of the flagged submissions.")
    delete_id = new_id if keep_submission_id == existing_id else existing_id

    try:
        db.query(Notification).filter(Notification.id == notification_id).update(
            {"status": NotificationStatus.ACTIONED.value, "read_at": utcnow()},
            synchronize_session=False,
        )
        # Assignments, suggestions and linked notifications cascade in the database
        db.query(Submission).filter(Submission.id == delete_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    activity_service.log_activity(
        db,
        ActivityAction.SUBMISSION_MERGED,
        actor,
        {"kept": keep_submission_id, "deleted": delete_id},
    )
    return delete_id
