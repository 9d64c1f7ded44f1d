"""Activity log action names (feed anomaly detection)."""

from enum import Enum


class ActivityAction(str, Enum):
    SUBMISSION_CREATED = "submission_created"
    SUBMISSION_UPDATED = "submission_updated"
    SUBMISSION_DELETED = "submission_deleted"
    SUBMISSION_MERGED = "submission_merged"
    STAFFING_FINALIZED = "staffing_finalized"
    EVENT_STATUS_CHANGED = "event_status_changed"
    EVENT_RESCHEDULED = "event_rescheduled"
