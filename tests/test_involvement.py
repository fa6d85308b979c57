"""
Tests for involvement scoring.

See world/standing/involvement.py for implementation.
"""

import pytest

from world.standing.core import Event
from world.standing.involvement import InvolvementScorer
from world.standing.tables import lookup, role_weight, ROLE_WEIGHTS, DEFAULT_ROLE_WEIGHT
from tests.helpers import NOW, create_test_village, days_ago


def create_scorer(repository=None):
    repository = repository or create_test_village()
    return repository, InvolvementScorer(repository)


# =============================================================================
# LOOKUP TABLES
# =============================================================================

def test_lookup_is_case_insensitive():
    assert role_weight("LEADER") == 1.0
    assert role_weight(" Officer ") == 0.8


def test_unknown_role_falls_back():
    assert role_weight("jester") == DEFAULT_ROLE_WEIGHT
    assert lookup(ROLE_WEIGHTS, None, 0.42) == 0.42


# =============================================================================
# COMPONENTS
# =============================================================================

def test_long_serving_leader_reliability():
    """A leader for 400 days: 0.5 base + full 0.3 stability."""
    repository, scorer = create_scorer()
    alice = repository.get_person("alice")

    assert scorer.reliability(alice, NOW) == pytest.approx(0.8)


def test_reliability_ignores_past_memberships():
    repository, scorer = create_scorer()
    carol = repository.get_person("carol")

    assert scorer.reliability(carol, NOW) == pytest.approx(0.5)


def test_role_activity_skips_memberships_ended_before_window():
    repository, scorer = create_scorer()
    carol = repository.get_person("carol")

    assert scorer.role_activity(carol, NOW) == 0.0


def test_role_activity_is_clamped():
    repository, scorer = create_scorer()
    alice = repository.get_person("alice")

    assert scorer.role_activity(alice, NOW) == 1.0


def test_initiative_counts_current_roles_only():
    repository, scorer = create_scorer()

    assert scorer.initiative(repository.get_person("alice")) == pytest.approx(0.9)
    assert scorer.initiative(repository.get_person("carol")) == 0.0


def test_network_centrality_counts_edges_both_directions():
    repository, scorer = create_scorer()

    assert scorer.network_centrality(repository.get_person("alice")) == pytest.approx(0.03)
    assert scorer.network_centrality(repository.get_person("dave")) == 0.0


def test_event_participation_zero_without_events():
    repository, scorer = create_scorer()

    assert scorer.event_participation(repository.get_person("alice"), NOW) == 0.0


def test_event_participation_spread_over_events():
    repository, scorer = create_scorer()
    repository.add_event(Event("ev1", "Harvest", "FESTIVAL", start_date=days_ago(20)))
    alice = repository.get_person("alice")

    # Council activity 0.8 at a 0.5 participation rate over one event
    assert scorer.event_participation(alice, NOW) == pytest.approx(0.4)

    repository.add_event(Event("ev2", "Flood", "DISASTER", start_date=days_ago(5), end_date=days_ago(4)))
    assert scorer.event_participation(alice, NOW) == pytest.approx(0.2)


def test_events_outside_window_ignored():
    repository, scorer = create_scorer()
    repository.add_event(
        Event("old", "Old War", "WAR", start_date=days_ago(400), end_date=days_ago(300))
    )

    assert scorer.event_participation(repository.get_person("alice"), NOW) == 0.0


# =============================================================================
# SCORE
# =============================================================================

def test_unaffiliated_person_score():
    """Only the reliability base contributes: 0.5 * 0.10."""
    _, scorer = create_scorer()
    result = scorer.calculate("dave", NOW)

    assert result.score == pytest.approx(0.05)
    assert result.breakdown["reliability"] == pytest.approx(0.5)
    assert result.window == "90d"
    assert result.calculated_at == NOW


def test_scores_stay_in_unit_interval():
    repository, scorer = create_scorer()

    for person in repository.list_people():
        result = scorer.calculate(person.person_id, NOW)
        assert 0.0 <= result.score <= 1.0
        for value in result.breakdown.values():
            assert 0.0 <= value <= 1.0


def test_breakdown_has_five_components():
    _, scorer = create_scorer()
    result = scorer.calculate("alice", NOW)

    assert set(result.breakdown) == {
        "role_activity",
        "event_participation",
        "network_centrality",
        "initiative",
        "reliability",
    }
    assert result.metadata["weights"]["role_activity"] == 0.35


def test_missing_person_scores_zero():
    _, scorer = create_scorer()
    result = scorer.calculate("ghost", NOW)

    assert result.score == 0.0
    assert result.metadata["missing"] is True


def test_same_inputs_same_score():
    _, scorer = create_scorer()

    assert scorer.calculate("bob", NOW) == scorer.calculate("bob", NOW)


def test_save_replaces_prior_row():
    repository, scorer = create_scorer()

    scorer.save("alice", scorer.calculate("alice", days_ago(10)))
    latest = scorer.calculate("alice", NOW)
    scorer.save("alice", latest)

    assert len(repository.list_involvement_scores()) == 1
    loaded = scorer.load("alice")
    assert loaded.score == latest.score
    assert loaded.calculated_at == NOW


def test_load_missing_returns_none():
    _, scorer = create_scorer()
    assert scorer.load("alice") is None
