"""
Tests for event effects over relation scores.

See world/standing/effects.py for implementation.
"""

import pytest

from world.standing.core import PersonRelation
from world.standing.effects import (
    EffectEngine,
    add_event_effect,
    apply_effects,
    create_event,
)
from world.standing.validation import ConfigurationError, NotFoundError
from tests.helpers import NOW, create_cohort_pair, days_ago


def create_world(base_score: float = 40):
    """a1/a2 in cohort-a, b1/b2 in cohort-b, a1->b1 and b1->a1 WORK relations."""
    repository = create_cohort_pair()
    repository.add_person_relation(PersonRelation("rel-ab", "a1", "b1", "WORK", score=base_score))
    repository.add_person_relation(PersonRelation("rel-ba", "b1", "a1", "WORK", score=base_score))
    event = create_event(repository, "Market Day", "FESTIVAL", start_date=days_ago(1), event_id="ev1")
    return repository, event


def test_no_effects_returns_base():
    repository, _ = create_world()
    result = EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW)

    assert result.base_score == 40
    assert result.effective_score == 40
    assert result.provenance == "base"
    assert result.effects_applied == []


def test_add_applies_before_multiply():
    """MULTIPLY stored first still runs after ADD: (40 + 10) * 1.5 = 75."""
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "MULTIPLY", 1.5, "GLOBAL", effect_id="mult")
    add_event_effect(repository, event.event_id, "ADD", 10, "GLOBAL", effect_id="add")

    result = EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW)

    assert result.effective_score == pytest.approx(75)
    assert result.effect_ids == ["add", "mult"]
    assert result.provenance == "add,mult"


def test_cohort_scope_is_direction_sensitive():
    repository, event = create_world()
    add_event_effect(
        repository, event.event_id, "ADD", 10, "COHORT_TO_COHORT",
        source_cohort_id="cohort-a", target_cohort_id="cohort-b",
    )
    engine = EffectEngine(repository)

    forward = engine.effective_score("a1", "b1", "WORK", NOW)
    backward = engine.effective_score("b1", "a1", "WORK", NOW)

    assert forward.effective_score == 50
    assert backward.effective_score == 40
    assert backward.provenance == "base"


def test_person_scope_matches_exact_pair():
    repository, event = create_world()
    add_event_effect(
        repository, event.event_id, "ADD", -15, "PERSON_TO_PERSON",
        from_person_id="b1", to_person_id="a1",
    )
    engine = EffectEngine(repository)

    assert engine.effective_score("b1", "a1", "WORK", NOW).effective_score == 25
    assert engine.effective_score("a1", "b1", "WORK", NOW).effective_score == 40


def test_domain_filter():
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "ADD", 10, "GLOBAL", domain="KINSHIP")

    result = EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW)

    assert result.effective_score == 40


def test_decay_shrinks_with_days_since_start():
    """-20 * 0.5^2 two days after the event started."""
    repository, _ = create_world()
    event = create_event(repository, "Quarrel", "DISPUTE", start_date=days_ago(2))
    add_event_effect(repository, event.event_id, "DECAY", -20, "GLOBAL", decay_per_day=0.5)

    result = EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW)

    assert result.effective_score == pytest.approx(35)


def test_decay_never_below_zero_then_clamped_to_scale():
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "DECAY", -100, "GLOBAL")

    result = EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW)

    assert result.effective_score == 1.0


def test_result_clamped_to_scale_max():
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "ADD", 200, "GLOBAL")

    assert EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW).effective_score == 100


def test_effects_outside_event_window_ignored():
    repository, _ = create_world()
    past = create_event(
        repository, "Old Feud", "DISPUTE", start_date=days_ago(30), end_date=days_ago(20)
    )
    future = create_event(repository, "Wedding", "FESTIVAL", start_date=NOW + 86400)
    add_event_effect(repository, past.event_id, "ADD", 10, "GLOBAL")
    add_event_effect(repository, future.event_id, "ADD", 10, "GLOBAL")

    assert EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW).effective_score == 40


def test_inactive_event_and_effect_ignored():
    repository, event = create_world()
    effect = add_event_effect(repository, event.event_id, "ADD", 10, "GLOBAL")
    engine = EffectEngine(repository)

    effect.is_active = False
    assert engine.effective_score("a1", "b1", "WORK", NOW).effective_score == 40

    effect.is_active = True
    event.is_active = False
    assert engine.effective_score("a1", "b1", "WORK", NOW).effective_score == 40


def test_missing_relation():
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "ADD", 10, "GLOBAL")

    result = EffectEngine(repository).effective_score("a2", "b2", "WORK", NOW)

    assert result.base_score == 0
    assert result.effective_score == 0
    assert result.provenance == "NO_RELATIONSHIP"


def test_stored_score_never_modified():
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "MULTIPLY", 2.0, "GLOBAL")

    EffectEngine(repository).effective_score("a1", "b1", "WORK", NOW)

    assert repository.get_person_relation("a1", "b1", "WORK").score == 40


def test_apply_effects_is_pure():
    repository, event = create_world()
    add_event_effect(repository, event.event_id, "ADD", 5, "GLOBAL")
    add_event_effect(repository, event.event_id, "MULTIPLY", 1.1, "GLOBAL")
    effects = repository.list_event_effects()
    events = {event.event_id: event}

    first = apply_effects(40, effects, events, NOW, 1, 100)
    second = apply_effects(40, effects, events, NOW, 1, 100)

    assert first == second


def test_scoped_effect_missing_refs_rejected():
    repository, event = create_world()

    with pytest.raises(ConfigurationError):
        add_event_effect(
            repository, event.event_id, "ADD", 10, "COHORT_TO_COHORT",
            source_cohort_id="cohort-a",
        )
    assert repository.list_event_effects() == []


def test_effect_on_unknown_event_rejected():
    repository, _ = create_world()

    with pytest.raises(NotFoundError):
        add_event_effect(repository, "no-such-event", "ADD", 10, "GLOBAL")
