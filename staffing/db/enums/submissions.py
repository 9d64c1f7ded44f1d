"""Submission lifecycle enums."""

from enum import Enum


class SubmissionStatus(str, Enum):
    """
    Staffing decision status.

    pending → confirmed (finalize) → pending (counsellor edit before start)
    any → not_applicable (event cancelled/postponed) → pending (reschedule)
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    NOT_APPLICABLE = "not_applicable"


class EventStatus(str, Enum):
    """Admin-managed event status, independent of the staffing decision."""

    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    POSTPONED = "POSTPONED"


class PaymentStatus(str, Enum):
    PAID = "PAID"
    UNPAID = "UNPAID"
    FREE = "FREE"


# Finalize/re-finalize is refused for these
LOCKED_EVENT_STATUSES = frozenset({EventStatus.COMPLETED.value, EventStatus.CANCELLED.value})

# Setting one of these frees all assigned counsellors
RELEASING_EVENT_STATUSES = frozenset({EventStatus.CANCELLED.value, EventStatus.POSTPONED.value})


class AvailabilityStatus(str, Enum):
    """Per-counsellor classification for a requested date window."""

    AVAILABLE = "available"
    PARTIALLY_AVAILABLE = "partially_available"
    BUSY = "busy"
