"""Housekeeping: expired notifications and old activity log rows."""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from staffing.core.config import settings
from staffing.core.structured_logging import build_log_context
from staffing.db.enums import JobName
from staffing.db.models import ActivityLog
from staffing.services import notification_service
from staffing.utils.clock import utcnow

logger = logging.getLogger(__name__)


def prune_activity_log(db: Session, retention_days: int, now: datetime | None = None) -> int:
    """Delete activity rows older than the retention window; 0 days disables pruning."""
    if retention_days <= 0:
        return 0
    cutoff = (now or utcnow()) - timedelta(days=retention_days)
    count = (
        db.query(ActivityLog)
        .filter(ActivityLog.created_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def run_cleanup(db: Session, now: datetime | None = None) -> dict[str, int]:
    """Returns counts per sweep; zeros on error."""
    log_extra = build_log_context(job_name=JobName.NOTIFICATION_CLEANUP.value)
    try:
        result = {
            "expired_notifications": notification_service.delete_expired(db, now),
            "activity_log_pruned": prune_activity_log(db, settings.ACTIVITY_LOG_RETENTION_DAYS, now),
        }
    except Exception:
        db.rollback()
        logger.exception("Error running cleanup", extra=log_extra)
        return {"expired_notifications": 0, "activity_log_pruned": 0}

    logger.info(
        "Cleanup removed %s expired notifications, %s activity rows",
        result["expired_notifications"],
        result["activity_log_pruned"],
        extra=log_extra,
    )
    return result
