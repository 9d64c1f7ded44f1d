"""
Notifications Router - feed, settings and manual job triggers.

The feed is visible to every role (scoped by target role / user); settings
and triggers are admin-only.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from staffing.core.deps import get_current_session, get_db, require_roles
from staffing.core.rate_limit import limiter
from staffing.db.enums import JobName, Role
from staffing.schemas.auth import UserSession
from staffing.schemas.notification import (
    NotificationListResponse,
    NotificationRead,
    SettingsUpdate,
    TriggerResponse,
    UnreadCountResponse,
)
from staffing.services import notification_service, settings_service
from staffing.services.notification_service import NotificationNotFoundError
from staffing.services.settings_service import SettingsValidationError

router = APIRouter()

admin_only = require_roles([Role.ADMIN])

# Trigger path -> (job name, payload, success message)
TRIGGERS: dict[str, tuple[JobName, dict, str]] = {
    "reminders": (JobName.EVENT_REMINDERS, {}, "Event reminders checked"),
    "overload": (JobName.COUNSELLOR_OVERLOAD, {}, "Counsellor overload checked"),
    "anomalies": (JobName.ANOMALY_DETECTION, {}, "Anomaly detection completed"),
    "weekly-report": (JobName.WEEKLY_REPORT, {"force": True}, "Weekly report generated"),
    "cleanup": (JobName.NOTIFICATION_CLEANUP, {}, "Cleanup completed"),
}


# =============================================================================
# Feed
# =============================================================================


@router.get("", response_model=NotificationListResponse)
def list_notifications(
    status: str | None = Query(None),
    type: str | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Visible, unexpired notifications, newest first."""
    rows = notification_service.get_notifications(
        db,
        username=session.username,
        role=session.role.value,
        status=status,
        type=type,
        limit=limit,
        offset=offset,
    )
    return NotificationListResponse(notifications=[NotificationRead.model_validate(n) for n in rows])


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Unread count plus the latest unread notification (for polling)."""
    count, latest = notification_service.get_unread_count(db, session.username, session.role.value)
    return UnreadCountResponse(
        count=count,
        latest_notification=NotificationRead.model_validate(latest) if latest else None,
    )


@router.post("/mark-all-read")
def mark_all_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    count = notification_service.mark_all_read(db, session.username, session.role.value)
    return {"ok": True, "marked_read": count}


@router.delete("/clear-read")
def clear_read(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete read and dismissed notifications."""
    count = notification_service.clear_read(db, session.username, session.role.value)
    return {"ok": True, "deleted": count}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: int,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        notification = notification_service.mark_read(db, notification_id, session.username, session.role.value)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationRead.model_validate(notification)


@router.patch("/{notification_id}/dismiss", response_model=NotificationRead)
def dismiss_notification(
    notification_id: int,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        notification = notification_service.dismiss(db, notification_id, session.username, session.role.value)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationRead.model_validate(notification)


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        notification_service.delete_notification(db, notification_id, session.username, session.role.value)
    except NotificationNotFoundError:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"ok": True}


# =============================================================================
# Settings (admin)
# =============================================================================


@router.get("/settings/all")
def get_settings(
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """All detection settings as {key: {value, description}}."""
    return settings_service.get_all_settings(db)


@router.put("/settings/all")
def update_settings(
    data: SettingsUpdate,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """Update existing keys; unknown keys are ignored."""
    try:
        updated = settings_service.update_settings(db, data.settings)
    except SettingsValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "updated": updated}


# =============================================================================
# Manual triggers (admin)
# =============================================================================


@router.post("/trigger/{job}", response_model=TriggerResponse)
@limiter.limit("10/minute")
async def trigger_job(
    job: str,
    request: Request,
    session: UserSession = Depends(admin_only),
    db: Session = Depends(get_db),
):
    """
    Run a detection job now on the request's session.

    Shares the scheduler's per-job run flag, so a trigger never overlaps a
    scheduled run of the same job. Handlers push the service work onto the
    threadpool, so awaiting the run here does not stall the event loop.
    """
    if job not in TRIGGERS:
        raise HTTPException(status_code=404, detail=f"Unknown trigger '{job}'")
    job_name, payload, message = TRIGGERS[job]

    runner = request.app.state.scheduler
    started = await runner.run_task(job_name.value, payload=payload, db=db)
    if not started:
        raise HTTPException(status_code=409, detail=f"Job '{job}' is already running")
    return TriggerResponse(ok=True, message=message, result=runner.tasks[job_name.value].last_result)
