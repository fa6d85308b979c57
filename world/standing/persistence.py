"""
JSON snapshots of an in-memory standing world.

A snapshot holds people, groups, the social graph, seeded relations
with their audit trail, events, policies and stored scores. Loading
rebuilds a fresh InMemoryRepository; nothing is merged into an
existing one.
"""

import json
import logging
import time
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from world.standing.config import StandingConfig
from world.standing.core import (
    Cohort,
    CohortMembership,
    Event,
    EventEffect,
    Faction,
    InvolvementScore,
    LoyaltyScore,
    Membership,
    Person,
    PersonRelation,
    RelationAudit,
    Relationship,
    SeedingPolicy,
)
from world.standing.repository import InMemoryRepository

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
KEY_SEPARATOR = "::"


# =============================================================================
# JSON ENCODING - Handle tuple keys and nested dataclasses
# =============================================================================

def _encode_tuple_key(key: Tuple[str, ...]) -> str:
    """("p1", "faction-a") -> "p1::faction-a" since JSON keys must be strings."""
    return KEY_SEPARATOR.join(key)


def _decode_tuple_key(key_str: str, size: int) -> Tuple[str, ...]:
    parts = key_str.split(KEY_SEPARATOR, size - 1)
    if len(parts) != size:
        raise ValueError(f"Invalid key format: {key_str}")
    return tuple(parts)


def _decode_person(data: dict) -> Person:
    fields = dict(data)
    fields["memberships"] = [Membership(**m) for m in data.get("memberships", [])]
    return Person(**fields)


def _decode_event(data: dict) -> Event:
    fields = dict(data)
    fields["effects"] = [EventEffect(**e) for e in data.get("effects", [])]
    return Event(**fields)


# =============================================================================
# WORLD STATE SERIALIZATION
# =============================================================================

def serialize_world_state(repository: InMemoryRepository) -> dict:
    """
    Serialize everything an InMemoryRepository holds.

    Args:
        repository: Store to snapshot

    Returns:
        JSON-serializable dict
    """
    return {
        "version": SNAPSHOT_VERSION,
        "people": [asdict(p) for p in repository.list_people()],
        "factions": [asdict(f) for f in repository.list_factions()],
        "cohorts": [asdict(repository.cohorts[k]) for k in sorted(repository.cohorts)],
        "cohort_memberships": {
            _encode_tuple_key(key): asdict(membership)
            for key, membership in sorted(repository.cohort_memberships.items())
        },
        "relationships": [
            asdict(repository.relationships[k]) for k in sorted(repository.relationships)
        ],
        "person_relations": {
            _encode_tuple_key(relation.key): asdict(relation)
            for relation in repository.list_person_relations()
        },
        "relation_audits": [asdict(a) for a in repository.list_relation_audits()],
        "events": [asdict(repository.events[k]) for k in sorted(repository.events)],
        "policies": [asdict(p) for p in repository.list_seeding_policies(active_only=False)],
        "involvement_scores": [asdict(s) for s in repository.list_involvement_scores()],
        "loyalty_scores": {
            _encode_tuple_key((s.person_id, s.target_id)): asdict(s)
            for s in repository.list_loyalty_scores()
        },
        "saved_at": time.time(),
    }


def deserialize_world_state(
    state_data: dict,
    config: Optional[StandingConfig] = None
) -> InMemoryRepository:
    """
    Rebuild a repository from serialize_world_state() output.

    Policies and effects go straight into the store's dicts: they were
    validated when first created.

    Raises:
        ValueError: If the snapshot version is unknown or a key is malformed
    """
    version = state_data.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version}")

    repository = InMemoryRepository(config)

    for data in state_data.get("people", []):
        repository.add_person(_decode_person(data))
    for data in state_data.get("factions", []):
        repository.add_faction(Faction(**data))
    for data in state_data.get("cohorts", []):
        repository.add_cohort(Cohort(**data))

    for key_str, data in state_data.get("cohort_memberships", {}).items():
        key = _decode_tuple_key(key_str, 2)
        repository.cohort_memberships[key] = CohortMembership(**data)

    for data in state_data.get("relationships", []):
        repository.add_relationship(Relationship(**data))

    for key_str, data in state_data.get("person_relations", {}).items():
        _decode_tuple_key(key_str, 3)
        repository.add_person_relation(PersonRelation(**data))

    for data in state_data.get("relation_audits", []):
        repository.add_relation_audit(RelationAudit(**data))

    for data in state_data.get("events", []):
        event = _decode_event(data)
        repository.events[event.event_id] = event

    for data in state_data.get("policies", []):
        policy = SeedingPolicy(**data)
        repository.policies[policy.policy_id] = policy

    for data in state_data.get("involvement_scores", []):
        repository.upsert_involvement_score(InvolvementScore(**data))

    loyalty: Dict[str, dict] = state_data.get("loyalty_scores", {})
    for key_str, data in loyalty.items():
        _decode_tuple_key(key_str, 2)
        repository.upsert_loyalty_score(LoyaltyScore(**data))

    return repository


# =============================================================================
# FILE I/O
# =============================================================================

def save_world_state(
    repository: InMemoryRepository,
    path: Union[str, Path] = "data/standing/world.json"
) -> Path:
    """
    Save a snapshot to a JSON file.

    Creates the parent directory if needed and writes atomically (temp
    file, then rename).

    Returns:
        Path written
    """
    state_file = Path(path)
    state_file.parent.mkdir(parents=True, exist_ok=True)
    state_data = serialize_world_state(repository)

    temp_file = state_file.with_suffix(".json.tmp")
    with open(temp_file, 'w') as f:
        json.dump(state_data, f, indent=2)

    temp_file.replace(state_file)
    logger.info(f"Saved world state to {state_file}")
    return state_file


def load_world_state(
    path: Union[str, Path] = "data/standing/world.json",
    config: Optional[StandingConfig] = None
) -> Optional[InMemoryRepository]:
    """
    Load a snapshot if the file exists.

    Returns:
        Rebuilt repository, or None if no file was found

    Raises:
        ValueError: If the file is corrupted or from an unknown version
    """
    state_file = Path(path)
    if not state_file.exists():
        return None

    with open(state_file, 'r') as f:
        try:
            state_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Corrupted world state in {state_file}: {e}") from e

    repository = deserialize_world_state(state_data, config)
    logger.info(f"Loaded world state from {state_file}")
    return repository
