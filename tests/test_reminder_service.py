"""Tests for event reminders."""

from datetime import date, timedelta

import pytest

from staffing.db.enums import NotificationPriority, NotificationType
from staffing.db.models import Notification
from staffing.services import reminder_service, settings_service

TODAY = date(2026, 3, 1)


def _reminders(db):
    return db.query(Notification).filter(Notification.type == NotificationType.EVENT_REMINDER.value).all()


@pytest.mark.parametrize(
    "days,expected",
    [
        (0, NotificationPriority.CRITICAL),
        (1, NotificationPriority.CRITICAL),
        (3, NotificationPriority.HIGH),
        (7, NotificationPriority.HIGH),
        (14, NotificationPriority.MEDIUM),
        (30, NotificationPriority.LOW),
        (31, None),
    ],
)
def test_reminder_priority(days, expected):
    assert reminder_service.reminder_priority(days) == expected


def test_is_reminder_day():
    milestones = [30, 14, 7, 3, 1]
    assert reminder_service.is_reminder_day(7, milestones)
    assert not reminder_service.is_reminder_day(8, milestones)
    assert not reminder_service.is_reminder_day(0, milestones)


def test_pending_event_at_milestone_is_reminded(db, make_submission):
    event = make_submission(TODAY + timedelta(days=7), TODAY + timedelta(days=8))

    assert reminder_service.check_event_reminders(db, today=TODAY) == 1

    reminder = _reminders(db)[0]
    assert reminder.priority == NotificationPriority.HIGH.value
    assert reminder.related_submission_id == event.id
    assert reminder.metadata_json["issues"] == ["not confirmed", "no staff assigned"]


def test_staffed_confirmed_event_is_not_reminded(db, counsellors, make_submission):
    make_submission(TODAY + timedelta(days=7), TODAY + timedelta(days=8), assigned=[counsellors[0]])

    assert reminder_service.check_event_reminders(db, today=TODAY) == 0


def test_off_milestone_and_locked_events_are_skipped(db, make_submission):
    make_submission(TODAY + timedelta(days=8), TODAY + timedelta(days=9))
    make_submission(TODAY + timedelta(days=3), TODAY + timedelta(days=3), event_status="CANCELLED")
    make_submission(TODAY + timedelta(days=1), TODAY + timedelta(days=1), event_status="COMPLETED")

    assert reminder_service.check_event_reminders(db, today=TODAY) == 0


def test_custom_milestones(db, make_submission):
    settings_service.update_settings(db, {settings_service.EVENT_REMINDER_DAYS: [8]})
    make_submission(TODAY + timedelta(days=8), TODAY + timedelta(days=9))

    assert reminder_service.check_event_reminders(db, today=TODAY) == 1
    assert _reminders(db)[0].priority == NotificationPriority.MEDIUM.value


def test_disabled_returns_zero(db, make_submission):
    make_submission(TODAY + timedelta(days=1), TODAY + timedelta(days=1))
    settings_service.update_settings(db, {settings_service.EVENT_REMINDER_ENABLED: False})

    assert reminder_service.check_event_reminders(db, today=TODAY) == 0


def test_query_failure_is_contained(db, make_submission, monkeypatch):
    make_submission(TODAY + timedelta(days=1), TODAY + timedelta(days=1))

    def boom(*args, **kwargs):
        raise RuntimeError("settings unavailable")

    monkeypatch.setattr(settings_service, "get_int_list", boom)

    assert reminder_service.check_event_reminders(db, today=TODAY) == 0
