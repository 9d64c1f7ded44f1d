"""Tests for the duplicate similarity scorer."""

from dataclasses import dataclass
from datetime import date
from itertools import product

from staffing.services import similarity_service


@dataclass
class Event:
    organizer: str | None = None
    organizer_id: int | None = None
    event_name_id: int | None = None
    city: str | None = None
    country: str | None = None
    start_date: date = date(2026, 1, 10)
    end_date: date = date(2026, 1, 10)


def test_paris_scenario_scores_above_threshold():
    s1 = Event(organizer_id=5, country="FR", city="Paris", start_date=date(2026, 1, 10), end_date=date(2026, 1, 12))
    s2 = Event(organizer_id=5, country="FR", city="Paris", start_date=date(2026, 1, 11), end_date=date(2026, 1, 15))

    result = similarity_service.calculate_similarity(s1, s2)

    assert result.score >= 0.75
    assert result.score >= 0.7
    assert result.factors == ["Same organizer", "Overlapping dates", "Same country", "Similar city"]


def test_score_is_symmetric():
    events = [
        Event(organizer="Acme", organizer_id=1, event_name_id=3, city="Paris", country="France"),
        Event(organizer="acme", city="Pariss", country="france", start_date=date(2026, 1, 9)),
        Event(organizer_id=2, event_name_id=3, city="Lyon", country="France", end_date=date(2026, 1, 20)),
        Event(organizer="Other", city="", country="Spain", start_date=date(2026, 2, 1), end_date=date(2026, 2, 2)),
    ]
    for first, second in product(events, repeat=2):
        assert (
            similarity_service.calculate_similarity(first, second).score
            == similarity_service.calculate_similarity(second, first).score
        )


def test_organizer_name_fallback_only_without_ids():
    by_name = similarity_service.calculate_similarity(
        Event(organizer="Acme Fairs", organizer_id=None, start_date=date(2026, 1, 1), end_date=date(2026, 1, 1)),
        Event(organizer="ACME FAIRS", organizer_id=7, start_date=date(2026, 3, 1), end_date=date(2026, 3, 1)),
    )
    different_ids = similarity_service.calculate_similarity(
        Event(organizer="Acme Fairs", organizer_id=6, start_date=date(2026, 1, 1), end_date=date(2026, 1, 1)),
        Event(organizer="Acme Fairs", organizer_id=7, start_date=date(2026, 3, 1), end_date=date(2026, 3, 1)),
    )

    assert by_name.score == 0.30
    assert by_name.factors == ["Similar organizer name"]
    assert different_ids.score == 0.0


def test_city_similarity_threshold():
    assert similarity_service.string_similarity("london", "londn") >= 0.8
    assert similarity_service.string_similarity("paris", "porto") < 0.8
    assert similarity_service.string_similarity("", "") == 0.0


def test_levenshtein_distance():
    assert similarity_service.levenshtein_distance("kitten", "sitting") == 3
    assert similarity_service.levenshtein_distance("", "abc") == 3
    assert similarity_service.levenshtein_distance("same", "same") == 0


def test_score_is_rounded():
    result = similarity_service.calculate_similarity(
        Event(organizer_id=1, event_name_id=2, country="FR", city="Nice"),
        Event(organizer_id=1, event_name_id=2, country="fr", city="Nice"),
    )
    assert result.score == 1.0
