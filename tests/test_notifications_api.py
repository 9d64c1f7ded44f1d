from datetime import date

import pytest

from staffing.db.enums import NotificationPriority, NotificationType, TargetRole
from staffing.db.models import Notification, Submission
from staffing.services import notification_service


def _notify(db, title, **kwargs):
    return notification_service.create_notification(
        db,
        type=kwargs.pop("type", NotificationType.ANOMALY),
        priority=NotificationPriority.MEDIUM,
        title=title,
        message="body",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_feed_and_unread_count(client, db, admin_headers, counsellor_headers):
    _notify(db, "admins")
    _notify(db, "everyone", target_role=TargetRole.ALL)

    admin_feed = await client.get("/notifications", headers=admin_headers)
    counsellor_count = await client.get("/notifications/unread-count", headers=counsellor_headers)

    assert sorted(n["title"] for n in admin_feed.json()["notifications"]) == ["admins", "everyone"]
    assert counsellor_count.json()["count"] == 1
    assert counsellor_count.json()["latest_notification"]["title"] == "everyone"


@pytest.mark.asyncio
async def test_read_dismiss_delete(client, db, admin_headers, counsellor_headers):
    first = _notify(db, "first")
    second = _notify(db, "second")

    read = await client.patch(f"/notifications/{first}/read", headers=admin_headers)
    hidden = await client.patch(f"/notifications/{first}/read", headers=counsellor_headers)
    dismissed = await client.patch(f"/notifications/{second}/dismiss", headers=admin_headers)

    assert read.json()["status"] == "read"
    assert hidden.status_code == 404
    assert dismissed.json()["status"] == "dismissed"

    cleared = await client.delete("/notifications/clear-read", headers=admin_headers)
    assert cleared.json() == {"ok": True, "deleted": 2}

    third = _notify(db, "third")
    assert (await client.delete(f"/notifications/{third}", headers=admin_headers)).json() == {"ok": True}
    assert db.query(Notification).count() == 0


@pytest.mark.asyncio
async def test_mark_all_read(client, db, admin_headers):
    _notify(db, "a")
    _notify(db, "b")

    response = await client.post("/notifications/mark-all-read", headers=admin_headers)

    assert response.json() == {"ok": True, "marked_read": 2}


@pytest.mark.asyncio
async def test_settings_admin_only(client, admin_headers, counsellor_headers):
    forbidden = await client.get("/notifications/settings/all", headers=counsellor_headers)
    updated = await client.put(
        "/notifications/settings/all",
        json={"settings": {"weekly_report_enabled": False, "unknown": 1}},
        headers=admin_headers,
    )
    current = await client.get("/notifications/settings/all", headers=admin_headers)

    assert forbidden.status_code == 403
    assert updated.json() == {"ok": True, "updated": ["weekly_report_enabled"]}
    assert current.json()["weekly_report_enabled"]["value"] == "false"


@pytest.mark.asyncio
async def test_settings_invalid_value_is_rejected(client, admin_headers):
    response = await client.put(
        "/notifications/settings/all",
        json={"settings": {"weekly_report_enabled": False, "counsellor_overload_threshold": "five"}},
        headers=admin_headers,
    )
    current = await client.get("/notifications/settings/all", headers=admin_headers)

    assert response.status_code == 400
    assert "counsellor_overload_threshold" in response.json()["detail"]
    assert current.json()["counsellor_overload_threshold"]["value"] == "5"
    assert current.json()["weekly_report_enabled"]["value"] == "true"


@pytest.mark.asyncio
async def test_trigger_weekly_report_forces_run(client, db, admin_headers):
    await client.put(
        "/notifications/settings/all", json={"settings": {"weekly_report_enabled": False}}, headers=admin_headers
    )

    first = await client.post("/notifications/trigger/weekly-report", headers=admin_headers)
    second = await client.post("/notifications/trigger/weekly-report", headers=admin_headers)

    assert first.status_code == 200
    assert second.json()["result"] is True
    reports = db.query(Notification).filter(Notification.type == NotificationType.WEEKLY_REPORT.value)
    assert reports.count() == 1


@pytest.mark.asyncio
async def test_trigger_errors(client, admin_headers, counsellor_headers):
    unknown = await client.post("/notifications/trigger/everything", headers=admin_headers)
    forbidden = await client.post("/notifications/trigger/reminders", headers=counsellor_headers)

    assert unknown.status_code == 404
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_trigger_cleanup_reports_counts(client, admin_headers):
    response = await client.post("/notifications/trigger/cleanup", headers=admin_headers)

    assert response.json()["result"] == {"expired_notifications": 0, "activity_log_pruned": 0}


@pytest.mark.asyncio
async def test_duplicate_merge_and_dismiss(client, db, make_submission, admin_headers):
    existing = make_submission(date(2099, 4, 10), date(2099, 4, 12), submitted_by="bob")
    new = make_submission(date(2099, 4, 10), date(2099, 4, 12))
    other = make_submission(date(2099, 6, 1), date(2099, 6, 2), city="Nice")
    new_id, existing_id = new.id, existing.id
    metadata = {"new_submission_id": new_id, "existing_submission_id": existing_id}
    flagged = _notify(db, "dup", type=NotificationType.DUPLICATE_DETECTED, metadata=metadata,
                      related_submission_id=new_id)

    wrong = await client.post(
        f"/duplicates/{flagged}/merge", json={"keep_submission_id": other.id}, headers=admin_headers
    )
    merged = await client.post(
        f"/duplicates/{flagged}/merge", json={"keep_submission_id": existing_id}, headers=admin_headers
    )

    assert wrong.status_code == 400
    assert merged.json() == {"ok": True, "kept": existing_id, "deleted": new_id}
    assert db.query(Submission).filter(Submission.id == new_id).count() == 0

    missing = await client.post("/duplicates/9999/dismiss", headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
