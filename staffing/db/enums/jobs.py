"""Background job enums."""

from enum import Enum


class JobName(str, Enum):
    """Periodic detection jobs, keyed by name in the scheduler."""

    EVENT_REMINDERS = "event_reminders"
    ANOMALY_DETECTION = "anomaly_detection"
    COUNSELLOR_OVERLOAD = "counsellor_overload"
    NOTIFICATION_CLEANUP = "notification_cleanup"
    WEEKLY_REPORT = "weekly_report"
