"""
Calendar-day range helpers.

All ranges are inclusive on both ends and carry no time component.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from sqlalchemy import not_, or_
from sqlalchemy.sql.elements import ColumnElement

RANGE_SEPARATOR = " -> "
ONE_DAY = timedelta(days=1)


class InvalidDateRangeError(ValueError):
    """Malformed date or start after end."""


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string; raises ValueError otherwise."""
    if not isinstance(value, str) or len(value) != 10:
        raise InvalidDateRangeError(f"Invalid date '{value}', expected YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateRangeError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidDateRangeError("start_date must be on or before end_date")


def enumerate_days(start: date, end: date) -> list[date]:
    """Every calendar day from start to end, ascending. Empty when start > end."""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += ONE_DAY
    return days


def overlaps(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Closed-interval overlap test."""
    return not (end_a < start_b or start_a > end_b)


def overlap_clause(start_column, end_column, start: date, end: date) -> ColumnElement[bool]:
    """
    Same predicate as overlaps(), as a bound SQL expression.

    Example:
        db.query(Submission).filter(
            overlap_clause(Submission.start_date, Submission.end_date, q_start, q_end)
        )
    """
    return not_(or_(end_column < start, start_column > end))


def compress_to_ranges(days: Iterable[date]) -> list[str]:
    """
    Collapse a set of days into maximal consecutive runs.

    Singletons render as "2026-01-10", runs as "2026-01-10 -> 2026-01-12".
    """
    ordered = sorted(set(days))
    if not ordered:
        return []

    ranges: list[str] = []
    run_start = run_end = ordered[0]
    for day in ordered[1:]:
        if day == run_end + ONE_DAY:
            run_end = day
            continue
        ranges.append(_render_run(run_start, run_end))
        run_start = run_end = day
    ranges.append(_render_run(run_start, run_end))
    return ranges


def format_date_ranges(days: Iterable[date]) -> str:
    """Comma-joined compress_to_ranges(), empty string for no days."""
    return ", ".join(compress_to_ranges(days))


def expand_ranges(ranges: Iterable[str]) -> set[date]:
    """Inverse of compress_to_ranges()."""
    days: set[date] = set()
    for item in ranges:
        if RANGE_SEPARATOR in item:
            first, last = item.split(RANGE_SEPARATOR, 1)
            days.update(enumerate_days(parse_date(first), parse_date(last)))
        else:
            days.add(parse_date(item))
    return days


def _render_run(start: date, end: date) -> str:
    if start == end:
        return start.isoformat()
    return f"{start.isoformat()}{RANGE_SEPARATOR}{end.isoformat()}"
