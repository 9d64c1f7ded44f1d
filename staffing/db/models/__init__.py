"""SQLAlchemy ORM models."""

from staffing.db.models.activity import ActivityLog
from staffing.db.models.counsellors import Counsellor
from staffing.db.models.notifications import DuplicateDismissal, Notification, NotificationSetting
from staffing.db.models.presets import CountrySuggestion, EventName, EventType, Organizer
from staffing.db.models.submissions import Submission, SubmissionAssignment, SubmissionSuggestion

__all__ = [
    "ActivityLog",
    "Counsellor",
    "CountrySuggestion",
    "DuplicateDismissal",
    "EventName",
    "EventType",
    "Notification",
    "NotificationSetting",
    "Organizer",
    "Submission",
    "SubmissionAssignment",
    "SubmissionSuggestion",
]
