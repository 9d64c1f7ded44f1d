"""
Notification Service - in-app notification store.

Creation is idempotent within a one-hour window; weekly reports are
single-instance. Every read and mutation is scoped by the visibility
predicate (role, 'all', or the user's own username).
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from staffing.db.enums import (
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    TargetRole,
)
from staffing.db.models import Notification
from staffing.utils.clock import utcnow

logger = logging.getLogger(__name__)

DEDUPE_WINDOW = timedelta(hours=1)
CLEARABLE_STATUSES = (NotificationStatus.READ.value, NotificationStatus.DISMISSED.value)


class NotificationNotFoundError(Exception):
    """Notification does not exist or is not visible to the caller."""


# =============================================================================
# Creation
# =============================================================================


def create_notification(
    db: Session,
    type: NotificationType,
    priority: NotificationPriority,
    title: str,
    message: str,
    metadata: dict | None = None,
    target_role: TargetRole = TargetRole.ADMIN,
    target_user: str | None = None,
    related_submission_id: int | None = None,
    expires_at: datetime | None = None,
    now: datetime | None = None,
) -> int | None:
    """
    Create a notification and return its id.

    Dedupes on unread + type + title + related submission within the last
    hour, returning the existing id. Weekly reports replace every earlier
    weekly report instead. Storage failures are logged and return None.
    """
    now = now or utcnow()
    try:
        if type == NotificationType.WEEKLY_REPORT:
            deleted = (
                db.query(Notification)
                .filter(Notification.type == NotificationType.WEEKLY_REPORT.value)
                .delete(synchronize_session=False)
            )
            logger.info("Deleted %s old weekly report(s)", deleted)
        else:
            existing_id = _find_recent_duplicate(db, type, title, related_submission_id, now)
            if existing_id is not None:
                return existing_id

        notification = Notification(
            type=type.value,
            priority=priority.value,
            title=title,
            message=message,
            metadata_json=metadata,
            target_role=target_role.value,
            target_user=target_user,
            related_submission_id=related_submission_id,
            expires_at=expires_at,
            created_at=now,
        )
        db.add(notification)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating %s notification", type.value)
        return None

    logger.info("Created notification id=%s type=%s", notification.id, type.value)
    return notification.id


def _find_recent_duplicate(
    db: Session,
    type: NotificationType,
    title: str,
    related_submission_id: int | None,
    now: datetime,
) -> int | None:
    query = db.query(Notification.id).filter(
        Notification.type == type.value,
        Notification.title == title,
        Notification.status == NotificationStatus.UNREAD.value,
        Notification.created_at > now - DEDUPE_WINDOW,
    )
    if related_submission_id is None:
        query = query.filter(Notification.related_submission_id.is_(None))
    else:
        query = query.filter(Notification.related_submission_id == related_submission_id)
    row = query.first()
    return row[0] if row else None


# =============================================================================
# Queries (visibility-scoped)
# =============================================================================


def _visible(db: Session, username: str, role: str) -> Query:
    return db.query(Notification).filter(
        or_(
            Notification.target_role == role,
            Notification.target_role == TargetRole.ALL.value,
            Notification.target_user == username,
        )
    )


def _not_expired(query: Query, now: datetime) -> Query:
    return query.filter(or_(Notification.expires_at.is_(None), Notification.expires_at > now))


def get_notifications(
    db: Session,
    username: str,
    role: str,
    status: str | None = None,
    type: str | None = None,
    limit: int = 20,
    offset: int = 0,
    now: datetime | None = None,
) -> list[Notification]:
    """Visible, unexpired notifications, newest first."""
    query = _not_expired(_visible(db, username, role), now or utcnow())
    if status:
        query = query.filter(Notification.status == status)
    if type:
        query = query.filter(Notification.type == type)
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_unread_count(
    db: Session,
    username: str,
    role: str,
    now: datetime | None = None,
) -> tuple[int, Notification | None]:
    """Count of unread notifications plus the latest one (for toasts)."""
    query = _not_expired(_visible(db, username, role), now or utcnow()).filter(
        Notification.status == NotificationStatus.UNREAD.value
    )
    latest = query.order_by(Notification.created_at.desc(), Notification.id.desc()).first()
    return query.count(), latest


def get_visible_notification(
    db: Session,
    notification_id: int,
    username: str,
    role: str,
) -> Notification:
    notification = (
        _visible(db, username, role).filter(Notification.id == notification_id).first()
    )
    if not notification:
        raise NotificationNotFoundError(f"Notification {notification_id} not found")
    return notification


# =============================================================================
# Mutations (visibility-scoped)
# =============================================================================


def set_status(
    db: Session,
    notification_id: int,
    username: str,
    role: str,
    status: NotificationStatus,
) -> Notification:
    """Move a visible notification to read/dismissed/actioned and stamp read_at."""
    notification = get_visible_notification(db, notification_id, username, role)
    notification.status = status.value
    notification.read_at = utcnow()
    db.commit()
    db.refresh(notification)
    return notification


def mark_read(db: Session, notification_id: int, username: str, role: str) -> Notification:
    return set_status(db, notification_id, username, role, NotificationStatus.READ)


def dismiss(db: Session, notification_id: int, username: str, role: str) -> Notification:
    return set_status(db, notification_id, username, role, NotificationStatus.DISMISSED)


def delete_notification(db: Session, notification_id: int, username: str, role: str) -> None:
    notification = get_visible_notification(db, notification_id, username, role)
    db.delete(notification)
    db.commit()


def mark_all_read(db: Session, username: str, role: str) -> int:
    """Mark all visible unread notifications as read. Returns count updated."""
    count = (
        _visible(db, username, role)
        .filter(Notification.status == NotificationStatus.UNREAD.value)
        .update(
            {"status": NotificationStatus.READ.value, "read_at": utcnow()},
            synchronize_session=False,
        )
    )
    db.commit()
    return count


def clear_read(db: Session, username: str, role: str) -> int:
    """Delete visible read and dismissed notifications. Returns count deleted."""
    count = (
        _visible(db, username, role)
        .filter(Notification.status.in_(CLEARABLE_STATUSES))
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def delete_expired(db: Session, now: datetime | None = None) -> int:
    """Expiry sweep used by the cleanup job."""
    count = (
        db.query(Notification)
        .filter(Notification.expires_at.is_not(None), Notification.expires_at <= (now or utcnow()))
        .delete(synchronize_session=False)
    )
    db.commit()
    return count
