"""Enum definitions for application constants."""

from staffing.db.enums.activity import ActivityAction
from staffing.db.enums.auth import Role
from staffing.db.enums.jobs import JobName
from staffing.db.enums.notifications import (
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    TargetRole,
)
from staffing.db.enums.submissions import (
    LOCKED_EVENT_STATUSES,
    RELEASING_EVENT_STATUSES,
    AvailabilityStatus,
    EventStatus,
    PaymentStatus,
    SubmissionStatus,
)

__all__ = [
    "ActivityAction",
    "AvailabilityStatus",
    "EventStatus",
    "JobName",
    "LOCKED_EVENT_STATUSES",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationType",
    "PaymentStatus",
    "RELEASING_EVENT_STATUSES",
    "Role",
    "SubmissionStatus",
    "TargetRole",
]
