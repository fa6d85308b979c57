"""
Tests for the JSON-ready service surface.

See world/standing/service.py for implementation.
"""

import json

import pytest

from world.standing.core import PersonRelation
from world.standing.repository import InMemoryRepository
from world.standing.seeding import create_seeding_policy
from world.standing.service import StandingService
from world.standing.validation import ComputationError
from tests.helpers import NOW, create_cohort, create_test_village


class BrokenStore(InMemoryRepository):
    def list_relationships(self, person_id, other_id=None):
        raise RuntimeError("connection lost")


def create_service():
    repository = create_test_village()
    create_cohort(repository, "elders", ["alice", "carol"], name="Elders")
    create_cohort(repository, "youth", ["bob", "dave"], name="Youth")
    create_seeding_policy(
        repository, "Mentors", "elders", "youth", "KINSHIP",
        probability=1.0, score_min=60, score_max=60, policy_id="mentors",
    )
    return repository, StandingService(repository)


def test_compute_involvement():
    repository, service = create_service()

    data = service.compute_involvement("alice", now=NOW)

    assert set(data) >= {"score", "breakdown", "window", "calculated_at"}
    assert json.dumps(data)
    assert repository.get_involvement_score("alice").score == data["score"]


def test_compute_loyalty():
    _, service = create_service()

    data = service.compute_loyalty("alice", "council", now=NOW)

    assert data["metadata"]["target_type"] == "faction"
    assert 0.0 <= data["score"] <= 1.0


def test_compute_for_unknown_ids_stores_nothing():
    repository, service = create_service()

    assert service.compute_involvement("ghost", now=NOW)["score"] == 0.0
    assert service.compute_loyalty("alice", "nobody", now=NOW)["score"] == 0.0
    assert repository.get_involvement_score("ghost") is None
    assert repository.get_loyalty_score("alice", "nobody") is None


def test_compute_involvement_store_failure_propagates():
    repository = BrokenStore()
    repository.add_person(create_test_village().get_person("alice"))
    service = StandingService(repository)

    with pytest.raises(ComputationError, match="connection lost"):
        service.compute_involvement("alice", now=NOW)


def test_recalculate_all():
    _, service = create_service()

    data = service.recalculate_all(now=NOW)

    assert data == {"total_people": 4, "processed_people": 4, "errors": [], "cancelled": False}


def test_preview_then_execute_seeding():
    repository, service = create_service()

    preview = service.preview_seeding("village-1", now=NOW)
    assert preview["dry_run"] is True
    assert preview["relationships_created"] == 4
    assert repository.list_person_relations() == []

    executed = service.execute_seeding("village-1", now=NOW)
    assert executed["success"] is True
    assert executed["relationships_created"] == 4
    assert executed["details"][0] == {
        "policy_name": "Mentors",
        "source_cohort": "Elders",
        "target_cohort": "Youth",
        "relationships_generated": 4,
    }
    assert json.dumps(executed)


def test_effective_score():
    repository, service = create_service()
    repository.add_person_relation(PersonRelation("rel-1", "bob", "alice", "FACTION", score=30))

    data = service.effective_score("bob", "alice", "FACTION", as_of=NOW)

    assert data["base_score"] == 30
    assert data["effective_score"] == 30
    assert data["effects_applied"] == []
    assert data["provenance"] == "base"
    assert json.dumps(data)


def test_statistics():
    _, service = create_service()
    service.recalculate_all(now=NOW)

    assert service.statistics()["people_with_involvement_scores"] == 4


def test_cohort_statistics_and_relation_history():
    _, service = create_service()
    service.execute_seeding("village-1", now=NOW)

    cohorts = {c["cohort_id"]: c for c in service.cohort_statistics()}
    assert cohorts["elders"]["relation_count"] == 4
    assert cohorts["youth"]["average_score"] == 60.0
    assert json.dumps(cohorts)

    relation = service.repository.list_person_relations()[0]
    history = service.relation_history(relation.relation_id)
    assert [h["action"] for h in history] == ["CREATE"]
    assert json.dumps(history)
