"""Tests for fuzzy name resolution."""

from __future__ import annotations

import pytest

from journeymap.engine.resolver import MatchQuality, Resolution, resolve, resolve_index
from journeymap.models.journey import Phase

ACTORS = [{"name": "Worker A"}, {"name": "Robot AGV"}]


def test_exact_match():
    assert resolve(ACTORS, "Robot AGV") == Resolution(1, MatchQuality.EXACT)


def test_exact_beats_earlier_partial():
    candidates = [{"name": "Packing Station"}, {"name": "Packing"}]
    assert resolve(candidates, "Packing") == Resolution(1, MatchQuality.EXACT)


def test_query_contained_in_name():
    assert resolve(ACTORS, "Robot") == Resolution(1, MatchQuality.PARTIAL)


def test_name_contained_in_query():
    assert resolve(ACTORS, "the Robot AGV unit") == Resolution(1, MatchQuality.PARTIAL)


def test_partial_takes_first_candidate_in_order():
    candidates = [{"name": "Dock North"}, {"name": "Dock South"}]
    assert resolve(candidates, "Dock").index == 0


def test_unknown_falls_back_to_first():
    res = resolve(ACTORS, "Drone")
    assert res == Resolution(0, MatchQuality.FALLBACK)
    assert not res.confident


def test_none_and_blank_fall_back():
    assert resolve(ACTORS, None).quality == MatchQuality.FALLBACK
    assert resolve(ACTORS, "   ").quality == MatchQuality.FALLBACK


def test_exact_step_compares_raw_text():
    # Padded names are still found, but only as a containment match
    assert resolve(ACTORS, "  Worker A ") == Resolution(0, MatchQuality.PARTIAL)
    assert resolve(ACTORS, "Worker A") == Resolution(0, MatchQuality.EXACT)


def test_id_form_tolerates_whitespace():
    assert resolve(ACTORS, " A2 ", id_prefix="actor") == Resolution(1, MatchQuality.ID)


def test_long_id_form_is_zero_based():
    assert resolve(ACTORS, "actor-1", id_prefix="actor") == Resolution(1, MatchQuality.ID)


def test_short_id_form_is_one_based():
    assert resolve(ACTORS, "A2", id_prefix="actor") == Resolution(1, MatchQuality.ID)
    assert resolve(ACTORS, "A1", id_prefix="actor").index == 0


def test_out_of_range_id_is_not_an_id_match():
    assert resolve(ACTORS, "actor-5", id_prefix="actor").quality == MatchQuality.FALLBACK
    assert resolve(ACTORS, "A0", id_prefix="actor").quality == MatchQuality.FALLBACK


def test_wrong_letter_is_not_an_id_match():
    assert resolve(ACTORS, "P2", id_prefix="actor").quality == MatchQuality.FALLBACK


def test_id_forms_ignored_without_prefix():
    assert resolve(ACTORS, "actor-1").quality == MatchQuality.FALLBACK


def test_model_candidates():
    phases = [Phase(id="phase-0", name="Arrive"), Phase(id="phase-1", name="Pick")]
    assert resolve_index(phases, "Pick") == 1
    assert resolve_index(phases, "P1", id_prefix="phase") == 0


def test_always_in_range():
    for query in ["", "x", "Worker A", "actor-99", "A99", None]:
        idx = resolve_index(ACTORS, query, id_prefix="actor")
        assert 0 <= idx < len(ACTORS)


def test_empty_candidates_raise():
    with pytest.raises(ValueError):
        resolve([], "anything")


def test_confident_property():
    assert Resolution(0, MatchQuality.ID).confident
    assert Resolution(0, MatchQuality.EXACT).confident
    assert not Resolution(0, MatchQuality.PARTIAL).confident
