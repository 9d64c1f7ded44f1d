"""Activity logging service - append-only audit trail feeding anomaly detection."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from staffing.db.enums import ActivityAction
from staffing.db.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    action: ActivityAction,
    username: str,
    details: dict | None = None,
    ip_address: str | None = None,
) -> ActivityLog | None:
    """
    Record an activity.

    Called after the business write has been committed; commits on its own
    and never raises, so audit failures cannot undo the logged action.

    Args:
        db: Database session
        action: Activity type (from ActivityAction enum)
        username: Actor
        details: Action-specific details as JSON
        ip_address: Client address when known

    Returns:
        The created entry, or None when the insert failed
    """
    entry = ActivityLog(
        action=action.value,
        username=username,
        details=details,
        ip_address=ip_address,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to log activity action=%s username=%s", action.value, username)
        return None
    return entry
