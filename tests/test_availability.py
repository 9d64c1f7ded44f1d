"""Tests for the availability calculator."""

from datetime import date

import pytest

from staffing.db.enums import AvailabilityStatus, EventStatus, SubmissionStatus
from staffing.services import availability_service
from staffing.utils.date_ranges import InvalidDateRangeError, enumerate_days, expand_ranges

WINDOW = (date(2026, 3, 10), date(2026, 3, 14))


def _by_username(rows):
    return {row.username: row for row in rows}


def test_no_assignments_means_available(db, counsellors):
    rows = availability_service.get_availability(db, *WINDOW)

    assert [r.username for r in rows] == ["alice", "bob", "carol"]
    for row in rows:
        assert row.status == AvailabilityStatus.AVAILABLE
        assert row.available_ranges == []
        assert row.conflicts == []


def test_full_window_assignment_is_busy(db, counsellors, make_submission):
    alice = counsellors[0]
    make_submission(date(2026, 3, 9), date(2026, 3, 15), assigned=[alice])

    rows = _by_username(availability_service.get_availability(db, *WINDOW))

    assert rows["alice"].status == AvailabilityStatus.BUSY
    assert rows["alice"].available_ranges == []
    assert rows["bob"].status == AvailabilityStatus.AVAILABLE


def test_partial_overlap_reconstructs_window(db, counsellors, make_submission):
    alice = counsellors[0]
    make_submission(date(2026, 3, 11), date(2026, 3, 12), assigned=[alice])

    row = _by_username(availability_service.get_availability(db, *WINDOW))["alice"]

    assert row.status == AvailabilityStatus.PARTIALLY_AVAILABLE
    assert row.available_ranges == ["2026-03-10", "2026-03-13 -> 2026-03-14"]
    busy = {date(2026, 3, 11), date(2026, 3, 12)}
    free = expand_ranges(row.available_ranges)
    assert free.isdisjoint(busy)
    assert free | busy == set(enumerate_days(*WINDOW))


def test_busy_days_union_across_conflicts(db, counsellors, make_submission):
    alice = counsellors[0]
    make_submission(date(2026, 3, 1), date(2026, 3, 11), assigned=[alice])
    make_submission(date(2026, 3, 12), date(2026, 3, 20), assigned=[alice], city="Lyon")

    row = _by_username(availability_service.get_availability(db, *WINDOW))["alice"]

    assert row.status == AvailabilityStatus.BUSY
    assert len(row.conflicts) == 2


def test_only_confirmed_submissions_count(db, counsellors, make_submission):
    alice = counsellors[0]
    make_submission(*WINDOW, assigned=[alice], status=SubmissionStatus.PENDING.value)

    row = _by_username(availability_service.get_availability(db, *WINDOW))["alice"]

    assert row.status == AvailabilityStatus.AVAILABLE


def test_exclude_submission_ignores_its_assignments(db, counsellors, make_submission):
    alice = counsellors[0]
    own = make_submission(*WINDOW, assigned=[alice])

    rows = _by_username(availability_service.get_availability(db, *WINDOW, exclude_submission_id=own.id))

    assert rows["alice"].status == AvailabilityStatus.AVAILABLE


def test_inactive_counsellors_are_not_listed(db, make_counsellor):
    make_counsellor("zoe", "zoe Adams")
    make_counsellor("adam", "Adam Young")
    make_counsellor("gone", "Gone Person", is_active=False)

    rows = availability_service.get_availability(db, *WINDOW)

    # Ordered case-insensitively by full name
    assert [r.username for r in rows] == ["adam", "zoe"]


def test_inverted_window_is_rejected(db, counsellors):
    with pytest.raises(InvalidDateRangeError):
        availability_service.get_availability(db, date(2026, 3, 14), date(2026, 3, 10))


def test_classify_pure():
    days = enumerate_days(date(2026, 1, 1), date(2026, 1, 3))
    conflict = availability_service.ConflictSummary(
        id=1, start_date=date(2026, 1, 3), end_date=date(2026, 1, 9), city="Oslo", country="Norway"
    )

    status, ranges = availability_service.classify(days, [conflict])

    assert status == AvailabilityStatus.PARTIALLY_AVAILABLE
    assert ranges == ["2026-01-01 -> 2026-01-02"]


def test_cancelled_event_releases_counsellor(db, counsellors, make_submission):
    alice = counsellors[0]
    make_submission(
        *WINDOW,
        status=SubmissionStatus.NOT_APPLICABLE.value,
        event_status=EventStatus.CANCELLED.value,
    )

    row = _by_username(availability_service.get_availability(db, *WINDOW))["alice"]

    assert row.status == AvailabilityStatus.AVAILABLE
