"""
Similarity scorer for duplicate detection.

Each factor is independent and additive; the organizer-id and
organizer-name factors are mutually exclusive per pair.
"""

from dataclasses import dataclass, field
from typing import Protocol

from staffing.utils.date_ranges import overlaps

CITY_SIMILARITY_MIN = 0.8

WEIGHT_SAME_ORGANIZER = 0.35
WEIGHT_ORGANIZER_NAME = 0.30
WEIGHT_OVERLAPPING_DATES = 0.25
WEIGHT_SAME_COUNTRY = 0.15
WEIGHT_SIMILAR_CITY = 0.15
WEIGHT_SAME_EVENT_NAME = 0.10


class Comparable(Protocol):
    organizer: str | None
    organizer_id: int | None
    event_name_id: int | None
    city: str | None
    country: str | None
    start_date: object
    end_date: object


@dataclass
class SimilarityResult:
    score: float
    factors: list[str] = field(default_factory=list)


def levenshtein_distance(a: str, b: str) -> int:
    """Classic insert/delete/substitute edit distance."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """1 - distance / longest length; two empty strings score 0."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return 1 - levenshtein_distance(a, b) / longest


def _same_text(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


def calculate_similarity(first: Comparable, second: Comparable) -> SimilarityResult:
    """Weighted similarity of two submissions, rounded to two decimals."""
    score = 0.0
    factors: list[str] = []

    if first.organizer_id and second.organizer_id:
        if first.organizer_id == second.organizer_id:
            score += WEIGHT_SAME_ORGANIZER
            factors.append("Same organizer")
    elif _same_text(first.organizer, second.organizer):
        # Name fallback only when a preset id is missing
        score += WEIGHT_ORGANIZER_NAME
        factors.append("Similar organizer name")

    if overlaps(first.start_date, first.end_date, second.start_date, second.end_date):
        score += WEIGHT_OVERLAPPING_DATES
        factors.append("Overlapping dates")

    if _same_text(first.country, second.country):
        score += WEIGHT_SAME_COUNTRY
        factors.append("Same country")

    if first.city and second.city:
        if string_similarity(first.city.lower(), second.city.lower()) >= CITY_SIMILARITY_MIN:
            score += WEIGHT_SIMILAR_CITY
            factors.append("Similar city")

    if first.event_name_id and second.event_name_id and first.event_name_id == second.event_name_id:
        score += WEIGHT_SAME_EVENT_NAME
        factors.append("Same event name")

    return SimilarityResult(score=round(score, 2), factors=factors)
