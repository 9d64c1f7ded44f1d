"""Clock helpers so services can be driven with a fixed 'now' in tests."""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Calendar day in UTC; the engine is date-only."""
    return utcnow().date()
