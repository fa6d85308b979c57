"""
Test helpers for building small deterministic villages.

Provides utilities to:
1. Build people, factions and cohorts with fixed timestamps
2. Assemble a standard village used across test modules
3. Wire cohort-to-cohort fixtures for seeding and effect tests
"""

from typing import Iterable, List, Optional

from world.standing.core import (
    Cohort,
    CohortMembership,
    Faction,
    Membership,
    Person,
    Relationship,
    SECONDS_PER_DAY,
)
from world.standing.repository import InMemoryRepository

# Fixed "now" so scores never depend on the wall clock
NOW = 1_700_000_000.0


def days_ago(days: float, now: float = NOW) -> float:
    return now - days * SECONDS_PER_DAY


# =============================================================================
# ENTITY BUILDERS
# =============================================================================

def create_test_person(
    person_id: str,
    name: Optional[str] = None,
    memberships: Optional[List[Membership]] = None,
    **fields
) -> Person:
    """
    Create a person with sensible defaults.

    Args:
        person_id: Identity of the person
        name: Display name (defaults to the capitalized id)
        memberships: Faction seats
        **fields: Any other Person field (species, age, occupation, ...)
    """
    return Person(
        person_id=person_id,
        name=name or person_id.capitalize(),
        memberships=memberships or [],
        **fields
    )


def create_cohort(
    repository: InMemoryRepository,
    cohort_id: str,
    member_ids: Iterable[str],
    name: Optional[str] = None
) -> Cohort:
    """Add a cohort and assign the given people to it."""
    cohort = repository.add_cohort(Cohort(cohort_id=cohort_id, name=name or cohort_id))
    for person_id in member_ids:
        repository.assign_to_cohort(
            CohortMembership(cohort_id=cohort_id, person_id=person_id, joined_at=NOW)
        )
    return cohort


def create_cohort_pair(
    source_ids: Iterable[str] = ("a1", "a2"),
    target_ids: Iterable[str] = ("b1", "b2")
) -> InMemoryRepository:
    """
    Repository with two cohorts, "cohort-a" and "cohort-b".

    Every member is created as a bare person.
    """
    repository = InMemoryRepository()
    source_ids = list(source_ids)
    target_ids = list(target_ids)
    for person_id in source_ids + target_ids:
        if repository.get_person(person_id) is None:
            repository.add_person(create_test_person(person_id))
    create_cohort(repository, "cohort-a", source_ids, name="Cohort A")
    create_cohort(repository, "cohort-b", target_ids, name="Cohort B")
    return repository


# =============================================================================
# STANDARD VILLAGE
# =============================================================================

def create_test_village() -> InMemoryRepository:
    """
    A small village with two factions, two households and a few edges.

    People:
        alice - Council leader for 400 days, farmer, household h1
        bob   - Merchants Guild member for 30 days, merchant, household h1
        carol - Merchants Guild officer, left 200 days ago, household h2
        dave  - nobody in particular, no memberships
    """
    repository = InMemoryRepository()

    repository.add_faction(Faction(faction_id="council", name="Council"))
    repository.add_faction(Faction(faction_id="guild", name="Merchants Guild"))

    repository.add_person(create_test_person(
        "alice",
        age=45,
        occupation="farmer",
        household_id="h1",
        workplace_id="farm-1",
        workplace_type="farm",
        memberships=[Membership("council", "leader", joined_at=days_ago(400), alignment=50)],
    ))
    repository.add_person(create_test_person(
        "bob",
        age=40,
        occupation="merchant",
        household_id="h1",
        memberships=[Membership("guild", "member", joined_at=days_ago(30))],
    ))
    repository.add_person(create_test_person(
        "carol",
        age=60,
        household_id="h2",
        memberships=[
            Membership("guild", "officer", joined_at=days_ago(900), left_at=days_ago(200)),
        ],
    ))
    repository.add_person(create_test_person("dave", age=20))

    repository.add_relationship(Relationship(
        "r1", "alice", "bob", "FRIEND", weight=0.8, sentiment=0.5, created_at=days_ago(10),
    ))
    repository.add_relationship(Relationship(
        "r2", "bob", "alice", "PATRONAGE", weight=0.6, created_at=days_ago(100),
    ))
    repository.add_relationship(Relationship(
        "r3", "alice", "carol", "KIN", weight=0.9, created_at=days_ago(3000),
    ))

    return repository
