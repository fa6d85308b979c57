"""
Tests for persistence layer.

See world/standing/persistence.py for implementation.
"""

import json
import tempfile
from pathlib import Path

import pytest

from world.standing.effects import EffectEngine, add_event_effect, create_event
from world.standing.orchestrator import ScoringOrchestrator
from world.standing.persistence import (
    deserialize_world_state,
    load_world_state,
    save_world_state,
    serialize_world_state,
    _decode_tuple_key,
    _encode_tuple_key,
)
from world.standing.seeding import SeedingPolicyEngine, create_seeding_policy
from tests.helpers import NOW, create_cohort, create_test_village, days_ago


def create_populated_world():
    """Village with cohorts, a seeded policy, an event and stored scores."""
    repository = create_test_village()
    create_cohort(repository, "elders", ["alice", "carol"], name="Elders")
    create_cohort(repository, "youth", ["bob", "dave"], name="Youth")
    create_seeding_policy(
        repository, "Mentors", "elders", "youth", "KINSHIP",
        probability=1.0, score_min=30, score_max=70, policy_id="mentors",
    )
    SeedingPolicyEngine(repository).execute("village-1", NOW)

    event = create_event(repository, "Harvest", "FESTIVAL", start_date=days_ago(3), event_id="harvest")
    add_event_effect(
        repository, event.event_id, "ADD", 5, "COHORT_TO_COHORT",
        source_cohort_id="elders", target_cohort_id="youth", effect_id="harvest-bonus",
    )

    ScoringOrchestrator(repository).recalculate_all_scores(now=NOW)
    return repository


def test_tuple_key_encoding():
    assert _encode_tuple_key(("alice", "council")) == "alice::council"
    assert _decode_tuple_key("alice::bob::WORK", 3) == ("alice", "bob", "WORK")


def test_invalid_key_raises():
    with pytest.raises(ValueError, match="Invalid key format"):
        _decode_tuple_key("no-separator", 2)


def test_serialize_is_json_safe():
    state = serialize_world_state(create_populated_world())

    json_str = json.dumps(state)
    assert json.loads(json_str)["version"] == state["version"]
    assert "alice::council" in state["loyalty_scores"]


def test_roundtrip_preserves_world():
    original = create_populated_world()

    restored = deserialize_world_state(serialize_world_state(original))

    assert restored.list_people() == original.list_people()
    assert restored.list_person_relations() == original.list_person_relations()
    assert restored.list_seeding_policies(active_only=False) == \
        original.list_seeding_policies(active_only=False)
    assert restored.list_event_effects() == original.list_event_effects()
    assert restored.list_involvement_scores() == original.list_involvement_scores()
    assert restored.list_loyalty_scores() == original.list_loyalty_scores()
    assert restored.list_person_cohorts("alice") == {"elders"}
    assert restored.list_relation_audits() == original.list_relation_audits()
    assert len(restored.list_relation_audits()) == 4


def test_effective_score_survives_roundtrip():
    original = create_populated_world()
    restored = deserialize_world_state(serialize_world_state(original))

    before = EffectEngine(original).effective_score("alice", "bob", "KINSHIP", NOW)
    after = EffectEngine(restored).effective_score("alice", "bob", "KINSHIP", NOW)

    assert after == before
    assert after.provenance == "harvest-bonus"


def test_seeding_after_reload_is_idempotent():
    restored = deserialize_world_state(serialize_world_state(create_populated_world()))

    result = SeedingPolicyEngine(restored).execute("village-1", NOW)

    assert result.relationships_created == 0


def test_unknown_version_rejected():
    state = serialize_world_state(create_test_village())
    state["version"] = 99

    with pytest.raises(ValueError, match="Unsupported snapshot version"):
        deserialize_world_state(state)


def test_save_and_load_file():
    original = create_populated_world()

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "nested" / "world.json"
        written = save_world_state(original, path)

        assert written == path
        assert path.exists()
        assert not path.with_suffix(".json.tmp").exists()

        restored = load_world_state(path)

    assert restored.list_people() == original.list_people()


def test_load_missing_file_returns_none():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert load_world_state(Path(tmpdir) / "absent.json") is None


def test_load_corrupted_file_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "world.json"
        path.write_text("{ not json")

        with pytest.raises(ValueError, match="Corrupted world state"):
            load_world_state(path)
