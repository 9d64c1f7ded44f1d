"""Tests for housekeeping sweeps and the activity log."""

from datetime import datetime, timedelta, timezone

from staffing.core.config import settings
from staffing.db.enums import ActivityAction, NotificationPriority, NotificationType
from staffing.db.models import ActivityLog, Notification
from staffing.services import activity_service, cleanup_service, notification_service

NOW = datetime(2026, 6, 1, 0, 0, tzinfo=timezone.utc)


def _activity(db, age: timedelta):
    db.add(ActivityLog(action=ActivityAction.SUBMISSION_CREATED.value, username="alice", created_at=NOW - age))
    db.commit()


def test_prune_activity_log(db):
    _activity(db, timedelta(days=100))
    _activity(db, timedelta(days=10))

    assert cleanup_service.prune_activity_log(db, retention_days=90, now=NOW) == 1
    assert db.query(ActivityLog).count() == 1


def test_zero_retention_keeps_everything(db):
    _activity(db, timedelta(days=1000))

    assert cleanup_service.prune_activity_log(db, retention_days=0, now=NOW) == 0
    assert db.query(ActivityLog).count() == 1


def test_run_cleanup(db, monkeypatch):
    monkeypatch.setattr(settings, "ACTIVITY_LOG_RETENTION_DAYS", 30)
    notification_service.create_notification(
        db,
        type=NotificationType.ANOMALY,
        priority=NotificationPriority.LOW,
        title="expired",
        message="body",
        expires_at=NOW - timedelta(seconds=1),
        now=NOW - timedelta(days=1),
    )
    _activity(db, timedelta(days=31))

    result = cleanup_service.run_cleanup(db, now=NOW)

    assert result == {"expired_notifications": 1, "activity_log_pruned": 1}
    assert db.query(Notification).count() == 0


def test_log_activity(db):
    entry = activity_service.log_activity(
        db, ActivityAction.SUBMISSION_DELETED, "alice", details={"submission_id": 7}, ip_address="10.0.0.1"
    )

    assert entry.id is not None
    stored = db.query(ActivityLog).one()
    assert stored.action == "submission_deleted"
    assert stored.details == {"submission_id": 7}
    assert stored.ip_address == "10.0.0.1"
