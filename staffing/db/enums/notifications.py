"""Notification-related enums."""

from enum import Enum


class NotificationType(str, Enum):
    """Types of in-app notifications raised by detection jobs."""

    EVENT_REMINDER = "event_reminder"
    DUPLICATE_DETECTED = "duplicate_detected"
    STAFFING_WARNING = "staffing_warning"  # Counsellor overload
    ANOMALY = "anomaly"
    WEEKLY_REPORT = "weekly_report"  # Single-instance


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    DISMISSED = "dismissed"
    ACTIONED = "actioned"


class TargetRole(str, Enum):
    """Audience of a notification; ALL reaches every role."""

    ADMIN = "admin"
    COUNSELLOR = "counsellor"
    ALL = "all"
