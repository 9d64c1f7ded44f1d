"""
Availability calculator.

Classifies every active counsellor against a requested date window using
confirmed assignments only, at calendar-day granularity.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffing.db.enums import AvailabilityStatus, SubmissionStatus
from staffing.db.models import Counsellor, Submission, SubmissionAssignment
from staffing.utils.date_ranges import (
    compress_to_ranges,
    enumerate_days,
    overlap_clause,
    validate_range,
)


@dataclass
class ConflictSummary:
    id: int
    start_date: date
    end_date: date
    city: str
    country: str


@dataclass
class CounsellorAvailability:
    counsellor_id: int
    username: str
    full_name: str
    status: AvailabilityStatus
    available_ranges: list[str] = field(default_factory=list)
    conflicts: list[ConflictSummary] = field(default_factory=list)


def classify(
    requested_days: list[date],
    conflicts: list[ConflictSummary],
) -> tuple[AvailabilityStatus, list[str]]:
    """
    Classify one counsellor for the requested days.

    Busy days are the conflicting submissions' days restricted to the
    request. Free ranges are only reported for partial availability.
    """
    requested = set(requested_days)
    busy: set[date] = set()
    for conflict in conflicts:
        busy.update(d for d in enumerate_days(conflict.start_date, conflict.end_date) if d in requested)

    if not busy:
        return AvailabilityStatus.AVAILABLE, []
    if len(busy) >= len(requested):
        return AvailabilityStatus.BUSY, []
    free = [d for d in requested_days if d not in busy]
    return AvailabilityStatus.PARTIALLY_AVAILABLE, compress_to_ranges(free)


def get_conflicts(
    db: Session,
    start: date,
    end: date,
    exclude_submission_id: int | None = None,
) -> dict[int, list[ConflictSummary]]:
    """Confirmed submissions overlapping [start, end], keyed by counsellor id."""
    query = (
        db.query(SubmissionAssignment.counsellor_id, Submission)
        .join(Submission, Submission.id == SubmissionAssignment.submission_id)
        .filter(
            Submission.status == SubmissionStatus.CONFIRMED.value,
            overlap_clause(Submission.start_date, Submission.end_date, start, end),
        )
    )
    if exclude_submission_id is not None:
        query = query.filter(Submission.id != exclude_submission_id)

    conflicts: dict[int, list[ConflictSummary]] = defaultdict(list)
    for counsellor_id, submission in query.order_by(Submission.start_date, Submission.id):
        conflicts[counsellor_id].append(
            ConflictSummary(
                id=submission.id,
                start_date=submission.start_date,
                end_date=submission.end_date,
                city=submission.city,
                country=submission.country,
            )
        )
    return conflicts


def get_availability(
    db: Session,
    start: date,
    end: date,
    exclude_submission_id: int | None = None,
) -> list[CounsellorAvailability]:
    """
    Availability of every active counsellor for [start, end].

    Args:
        exclude_submission_id: Ignore this submission's own assignments
            (used while re-finalizing it)

    Raises:
        InvalidDateRangeError: start is after end
    """
    validate_range(start, end)

    counsellors = (
        db.query(Counsellor)
        .filter(Counsellor.is_active.is_(True))
        .order_by(func.lower(Counsellor.full_name), Counsellor.id)
        .all()
    )
    conflicts = get_conflicts(db, start, end, exclude_submission_id)
    requested_days = enumerate_days(start, end)

    results = []
    for counsellor in counsellors:
        own_conflicts = conflicts.get(counsellor.id, [])
        status, ranges = classify(requested_days, own_conflicts)
        results.append(
            CounsellorAvailability(
                counsellor_id=counsellor.id,
                username=counsellor.username,
                full_name=counsellor.full_name,
                status=status,
                available_ranges=ranges,
                conflicts=own_conflicts,
            )
        )
    return results
