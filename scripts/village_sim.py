#!/usr/bin/env python3
"""Village sim: a small village, seeded relations, scores and a festival.

This is a lightweight, store-free walkthrough that demonstrates:
- cohorts and a cohort-to-cohort seeding policy (preview, then execute)
- involvement and loyalty recompute for everyone
- an event whose effects shift effective relation scores
- admin output for each step

Run:
  source .venv/bin/activate
  python scripts/village_sim.py [world-seed]

Same seed, same village: rerunning prints identical relations.
"""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

# Ensure repo root is on sys.path when running as a script
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from world.standing.admin_commands import (
    cmd_cohort_summary,
    cmd_effective_score,
    cmd_involvement_inspect,
    cmd_loyalty_top,
    cmd_score_summary,
    cmd_seeding_report,
)
from world.standing.config import DEFAULT_CONFIG_PATH, load_config_from_yaml, reset_config, set_config
from world.standing.core import (
    Cohort,
    CohortMembership,
    Faction,
    Membership,
    Person,
    Relationship,
    SECONDS_PER_DAY,
)
from world.standing.effects import add_event_effect, create_event
from world.standing.orchestrator import ScoringOrchestrator
from world.standing.repository import InMemoryRepository
from world.standing.seeding import SeedingPolicyEngine, create_seeding_policy


# ----------------------------
# Village
# ----------------------------

VILLAGERS = [
    # person_id, name, species, age, occupation, household, faction, role, days in faction
    ("p-ada", "Ada", "human", 52, "guard", "h-north", "guard", "leader", 900),
    ("p-bran", "Bran", "dwarf", 61, "artisan", "h-forge", "crafts", "leader", 1500),
    ("p-cato", "Cato", "human", 34, "merchant", "h-north", "guild", "officer", 200),
    ("p-dara", "Dara", "elf", 120, "scholar", "h-grove", "council", "member", 60),
    ("p-eli", "Eli", "human", 19, "laborer", "h-south", "guard", "recruit", 20),
    ("p-fenn", "Fenn", "dwarf", 45, "artisan", "h-forge", "crafts", "member", 400),
    ("p-gwen", "Gwen", "human", 28, "farmer", "h-south", None, None, 0),
    ("p-hal", "Hal", "human", 70, "noble", "h-hall", "council", "leader", 3000),
]

FACTIONS = [
    ("guard", "Town Guard"),
    ("crafts", "Craftsmen"),
    ("guild", "Merchants Guild"),
    ("council", "Council"),
]

COHORTS = {
    "old-families": ("Old Families", ["p-ada", "p-bran", "p-hal", "p-fenn"]),
    "newcomers": ("Newcomers", ["p-cato", "p-dara", "p-eli", "p-gwen"]),
}


def days_ago(days: float, now: float) -> float:
    return now - days * SECONDS_PER_DAY


def build_village(now: float) -> InMemoryRepository:
    repository = InMemoryRepository()

    for faction_id, name in FACTIONS:
        repository.add_faction(Faction(faction_id=faction_id, name=name))

    for person_id, name, species, age, occupation, household, faction_id, role, tenure in VILLAGERS:
        memberships: List[Membership] = []
        if faction_id:
            memberships.append(Membership(faction_id, role, joined_at=days_ago(tenure, now)))
        repository.add_person(Person(
            person_id=person_id,
            name=name,
            species=species,
            age=age,
            occupation=occupation,
            household_id=household,
            memberships=memberships,
        ))

    for cohort_id, (name, members) in COHORTS.items():
        repository.add_cohort(Cohort(cohort_id=cohort_id, name=name))
        for person_id in members:
            repository.assign_to_cohort(
                CohortMembership(cohort_id=cohort_id, person_id=person_id, joined_at=now)
            )

    edges = [
        ("e1", "p-ada", "p-eli", "COMMAND", 0.8, 0.2, 20),
        ("e2", "p-hal", "p-dara", "PATRONAGE", 0.7, 0.4, 50),
        ("e3", "p-bran", "p-fenn", "KIN", 0.9, 0.6, 4000),
        ("e4", "p-cato", "p-gwen", "FRIEND", 0.5, 0.7, 15),
        ("e5", "p-ada", "p-cato", "FRIEND", 0.4, -0.3, 120),
    ]
    for edge_id, src, dst, kind, weight, sentiment, age_days in edges:
        repository.add_relationship(Relationship(
            edge_id, src, dst, kind,
            weight=weight, sentiment=sentiment, created_at=days_ago(age_days, now),
        ))

    return repository


# ----------------------------
# Sim
# ----------------------------

def simulate(world_seed: Optional[str] = None) -> int:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config = load_config_from_yaml(DEFAULT_CONFIG_PATH)
    set_config(config)
    world_seed = world_seed or config.default_world_seed
    now = time.time()

    repository = build_village(now)

    print("=" * 72)
    print("VILLAGE SIM: cohorts / seeding / scores / events")
    print(f"world_seed={world_seed}")
    print("=" * 72)

    create_seeding_policy(
        repository, "Mentorship", "old-families", "newcomers", "WORK",
        probability=0.6, involvement_level="ACQUAINTANCE", score_min=35, score_max=75,
        policy_id="mentorship",
    )
    create_seeding_policy(
        repository, "Suspicion", "newcomers", "old-families", "FACTION",
        probability=0.4, involvement_level="RIVAL", score_min=10, score_max=40,
        policy_id="suspicion",
    )

    engine = SeedingPolicyEngine(repository)
    print("\n--- SEEDING PREVIEW ---")
    print(cmd_seeding_report(engine.preview(world_seed, now)))
    print("\n--- SEEDING EXECUTION ---")
    print(cmd_seeding_report(engine.execute(world_seed, now)))

    print("\n--- RELATIONS ---")
    for relation in repository.list_person_relations():
        print(
            f"  {relation.from_person_id} -> {relation.to_person_id} "
            f"[{relation.domain}] {relation.score} {relation.involvement}"
        )

    orchestrator = ScoringOrchestrator(repository)
    report = orchestrator.recalculate_all_scores(now=now)
    print("\n--- RECALCULATION ---")
    print(f"  processed {report.processed_people}/{report.total_people}, errors={len(report.errors)}")

    print()
    print(cmd_involvement_inspect(repository, "p-ada", now=now))
    print()
    print(cmd_loyalty_top(repository, "p-eli"))

    festival = create_event(
        repository, "Harvest Festival", "FESTIVAL", start_date=days_ago(2, now),
        end_date=now + 5 * SECONDS_PER_DAY,
    )
    add_event_effect(
        repository, festival.event_id, "ADD", 10, "COHORT_TO_COHORT", domain="WORK",
        source_cohort_id="old-families", target_cohort_id="newcomers",
    )
    add_event_effect(repository, festival.event_id, "MULTIPLY", 1.2, "GLOBAL")

    print("\n--- EVENT EFFECTS ---")
    for relation in repository.list_person_relations()[:3]:
        print(cmd_effective_score(
            repository, relation.from_person_id, relation.to_person_id, relation.domain, as_of=now,
        ))
        print()

    print(cmd_cohort_summary(repository))
    print()
    print(cmd_score_summary(repository))

    reset_config()
    return 0


if __name__ == "__main__":
    raise SystemExit(simulate(sys.argv[1] if len(sys.argv) > 1 else None))
