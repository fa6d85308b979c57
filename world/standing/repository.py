"""
Store interface for the standing system.

Scorers and engines receive a StandingRepository in their constructor.
Query shapes (joins, includes) stay behind this interface.

InMemoryRepository is the reference implementation used by tests,
the demo script and JSON snapshots (see persistence.py).
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Tuple

from world.standing.config import StandingConfig, get_config
from world.standing.core import (
    Cohort,
    CohortMembership,
    Event,
    EventEffect,
    Faction,
    InvolvementScore,
    LoyaltyScore,
    Person,
    PersonRelation,
    RelationAudit,
    Relationship,
    SeedingPolicy,
)
from world.standing.validation import (
    ConfigurationError,
    NotFoundError,
    validate_event_effect,
    validate_seeding_policy,
)

logger = logging.getLogger(__name__)


class StandingRepository(ABC):
    """Read/write operations the core needs from a data store."""

    # --- people and groups ---

    @abstractmethod
    def get_person(self, person_id: str) -> Optional[Person]: ...

    @abstractmethod
    def list_people(self) -> List[Person]: ...

    @abstractmethod
    def get_faction(self, faction_id: str) -> Optional[Faction]: ...

    @abstractmethod
    def list_factions(self) -> List[Faction]: ...

    @abstractmethod
    def list_faction_members(self, faction_id: str) -> List[Person]: ...

    @abstractmethod
    def get_cohort(self, cohort_id: str) -> Optional[Cohort]: ...

    @abstractmethod
    def list_cohorts(self) -> List[Cohort]: ...

    @abstractmethod
    def list_cohort_members(self, cohort_id: str) -> List[str]: ...

    @abstractmethod
    def list_person_cohorts(self, person_id: str) -> Set[str]: ...

    # --- graph ---

    @abstractmethod
    def list_relationships(
        self,
        person_id: str,
        other_id: Optional[str] = None
    ) -> List[Relationship]:
        """Relationships touching person_id; only those joining other_id if given."""

    @abstractmethod
    def get_person_relation(
        self,
        from_person_id: str,
        to_person_id: str,
        domain: str
    ) -> Optional[PersonRelation]: ...

    @abstractmethod
    def list_person_relations(self, policy_id: Optional[str] = None) -> List[PersonRelation]: ...

    @abstractmethod
    def add_person_relation(self, relation: PersonRelation) -> bool:
        """Insert if (from, to, domain) is free. Returns False if it already existed."""

    @abstractmethod
    def add_relation_audit(self, audit: RelationAudit) -> None:
        """Append an audit row. Rows are never updated or removed."""

    @abstractmethod
    def list_relation_audits(self, relation_id: Optional[str] = None) -> List[RelationAudit]:
        """Audit rows in the order they were written."""

    # --- events and policies ---

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[Event]: ...

    @abstractmethod
    def list_events(self, window_start: float, window_end: float) -> List[Event]:
        """Events whose time window overlaps [window_start, window_end]."""

    @abstractmethod
    def list_event_effects(self) -> List[EventEffect]: ...

    @abstractmethod
    def get_seeding_policy(self, policy_id: str) -> Optional[SeedingPolicy]: ...

    @abstractmethod
    def list_seeding_policies(self, active_only: bool = True) -> List[SeedingPolicy]: ...

    @abstractmethod
    def save_seeding_policy(self, policy: SeedingPolicy) -> None: ...

    # --- scores ---

    @abstractmethod
    def upsert_involvement_score(self, score: InvolvementScore) -> None: ...

    @abstractmethod
    def get_involvement_score(self, person_id: str) -> Optional[InvolvementScore]: ...

    @abstractmethod
    def list_involvement_scores(self) -> List[InvolvementScore]: ...

    @abstractmethod
    def upsert_loyalty_score(self, score: LoyaltyScore) -> None: ...

    @abstractmethod
    def get_loyalty_score(self, person_id: str, target_id: str) -> Optional[LoyaltyScore]: ...

    @abstractmethod
    def list_loyalty_scores(self, person_id: Optional[str] = None) -> List[LoyaltyScore]: ...


class InMemoryRepository(StandingRepository):
    """
    Dict-backed store.

    Every write takes a single lock, so upserts keyed by person or by
    (person, target) are atomic and relation inserts are insert-if-absent.
    Listings come back sorted by id so callers never see dict ordering.
    """

    def __init__(self, config: Optional[StandingConfig] = None):
        self.config = config or get_config()
        self._lock = threading.RLock()
        self.people: Dict[str, Person] = {}
        self.factions: Dict[str, Faction] = {}
        self.cohorts: Dict[str, Cohort] = {}
        self.cohort_memberships: Dict[Tuple[str, str], CohortMembership] = {}
        self.relationships: Dict[str, Relationship] = {}
        self.person_relations: Dict[Tuple[str, str, str], PersonRelation] = {}
        self.relation_audits: List[RelationAudit] = []
        self.events: Dict[str, Event] = {}
        self.policies: Dict[str, SeedingPolicy] = {}
        self.involvement_scores: Dict[str, InvolvementScore] = {}
        self.loyalty_scores: Dict[Tuple[str, str], LoyaltyScore] = {}

    # =========================================================================
    # WRITES USED BY BUILDERS AND THE CRUD LAYER
    # =========================================================================

    def add_person(self, person: Person) -> Person:
        with self._lock:
            self.people[person.person_id] = person
        return person

    def remove_person(self, person_id: str) -> None:
        """Delete a person and their cohort rows. Stored scores are kept."""
        with self._lock:
            self.people.pop(person_id, None)
            for key in [k for k in self.cohort_memberships if k[1] == person_id]:
                del self.cohort_memberships[key]
        logger.debug(f"Removed person {person_id}")

    def add_faction(self, faction: Faction) -> Faction:
        with self._lock:
            self.factions[faction.faction_id] = faction
        return faction

    def add_cohort(self, cohort: Cohort) -> Cohort:
        with self._lock:
            self.cohorts[cohort.cohort_id] = cohort
        return cohort

    def assign_to_cohort(self, membership: CohortMembership) -> None:
        """Add a person to a cohort. Re-assigning replaces the join metadata."""
        with self._lock:
            if membership.cohort_id not in self.cohorts:
                raise NotFoundError(f"Cohort not found: {membership.cohort_id}")
            self.cohort_memberships[(membership.cohort_id, membership.person_id)] = membership

    def remove_from_cohort(self, cohort_id: str, person_id: str) -> bool:
        with self._lock:
            return self.cohort_memberships.pop((cohort_id, person_id), None) is not None

    def add_relationship(self, relationship: Relationship) -> Relationship:
        with self._lock:
            self.relationships[relationship.relationship_id] = relationship
        return relationship

    def add_event(self, event: Event) -> Event:
        with self._lock:
            for effect in event.effects:
                validate_event_effect(effect)
            self.events[event.event_id] = event
        return event

    def add_event_effect(self, effect: EventEffect) -> EventEffect:
        """Attach a validated effect to an existing event."""
        validate_event_effect(effect)
        with self._lock:
            event = self.events.get(effect.event_id)
            if event is None:
                raise NotFoundError(f"Event not found: {effect.event_id}")
            event.effects.append(effect)
        return effect

    def add_seeding_policy(self, policy: SeedingPolicy) -> SeedingPolicy:
        validate_seeding_policy(policy, self.config.relation_scale)
        with self._lock:
            if policy.policy_id in self.policies:
                raise ConfigurationError(f"Seeding policy already exists: {policy.policy_id}")
            self.policies[policy.policy_id] = policy
        return policy

    # =========================================================================
    # PEOPLE AND GROUPS
    # =========================================================================

    def get_person(self, person_id: str) -> Optional[Person]:
        return self.people.get(person_id)

    def list_people(self) -> List[Person]:
        with self._lock:
            return [self.people[k] for k in sorted(self.people)]

    def get_faction(self, faction_id: str) -> Optional[Faction]:
        return self.factions.get(faction_id)

    def list_factions(self) -> List[Faction]:
        with self._lock:
            return [self.factions[k] for k in sorted(self.factions)]

    def list_faction_members(self, faction_id: str) -> List[Person]:
        return [
            person for person in self.list_people()
            if person.membership_in(faction_id) is not None
        ]

    def get_cohort(self, cohort_id: str) -> Optional[Cohort]:
        return self.cohorts.get(cohort_id)

    def list_cohorts(self) -> List[Cohort]:
        with self._lock:
            return [self.cohorts[k] for k in sorted(self.cohorts)]

    def list_cohort_members(self, cohort_id: str) -> List[str]:
        with self._lock:
            return sorted(pid for (cid, pid) in self.cohort_memberships if cid == cohort_id)

    def list_person_cohorts(self, person_id: str) -> Set[str]:
        with self._lock:
            return {cid for (cid, pid) in self.cohort_memberships if pid == person_id}

    # =========================================================================
    # GRAPH
    # =========================================================================

    def list_relationships(
        self,
        person_id: str,
        other_id: Optional[str] = None
    ) -> List[Relationship]:
        with self._lock:
            edges = [self.relationships[k] for k in sorted(self.relationships)]
        if other_id is None:
            return [r for r in edges if r.touches(person_id)]
        return [r for r in edges if r.connects(person_id, other_id)]

    def get_person_relation(
        self,
        from_person_id: str,
        to_person_id: str,
        domain: str
    ) -> Optional[PersonRelation]:
        return self.person_relations.get((from_person_id, to_person_id, domain))

    def list_person_relations(self, policy_id: Optional[str] = None) -> List[PersonRelation]:
        with self._lock:
            relations = [self.person_relations[k] for k in sorted(self.person_relations)]
        if policy_id is None:
            return relations
        return [r for r in relations if r.source_ref.get("policy_id") == policy_id]

    def add_person_relation(self, relation: PersonRelation) -> bool:
        with self._lock:
            if relation.key in self.person_relations:
                return False
            self.person_relations[relation.key] = relation
            return True

    def add_relation_audit(self, audit: RelationAudit) -> None:
        with self._lock:
            self.relation_audits.append(audit)

    def list_relation_audits(self, relation_id: Optional[str] = None) -> List[RelationAudit]:
        with self._lock:
            audits = list(self.relation_audits)
        if relation_id is None:
            return audits
        return [a for a in audits if a.relation_id == relation_id]

    # =========================================================================
    # EVENTS AND POLICIES
    # =========================================================================

    def get_event(self, event_id: str) -> Optional[Event]:
        return self.events.get(event_id)

    def list_events(self, window_start: float, window_end: float) -> List[Event]:
        with self._lock:
            events = [self.events[k] for k in sorted(self.events)]
        return [e for e in events if e.overlaps(window_start, window_end)]

    def list_event_effects(self) -> List[EventEffect]:
        with self._lock:
            return [
                effect
                for key in sorted(self.events)
                for effect in self.events[key].effects
            ]

    def get_seeding_policy(self, policy_id: str) -> Optional[SeedingPolicy]:
        return self.policies.get(policy_id)

    def list_seeding_policies(self, active_only: bool = True) -> List[SeedingPolicy]:
        with self._lock:
            policies = [self.policies[k] for k in sorted(self.policies)]
        if active_only:
            return [p for p in policies if p.is_active]
        return policies

    def save_seeding_policy(self, policy: SeedingPolicy) -> None:
        validate_seeding_policy(policy, self.config.relation_scale)
        with self._lock:
            self.policies[policy.policy_id] = policy

    # =========================================================================
    # SCORES
    # =========================================================================

    def upsert_involvement_score(self, score: InvolvementScore) -> None:
        with self._lock:
            self.involvement_scores[score.person_id] = score

    def get_involvement_score(self, person_id: str) -> Optional[InvolvementScore]:
        return self.involvement_scores.get(person_id)

    def list_involvement_scores(self) -> List[InvolvementScore]:
        with self._lock:
            return [self.involvement_scores[k] for k in sorted(self.involvement_scores)]

    def upsert_loyalty_score(self, score: LoyaltyScore) -> None:
        with self._lock:
            self.loyalty_scores[(score.person_id, score.target_id)] = score

    def get_loyalty_score(self, person_id: str, target_id: str) -> Optional[LoyaltyScore]:
        return self.loyalty_scores.get((person_id, target_id))

    def list_loyalty_scores(self, person_id: Optional[str] = None) -> List[LoyaltyScore]:
        with self._lock:
            scores = [self.loyalty_scores[k] for k in sorted(self.loyalty_scores)]
        if person_id is None:
            return scores
        return [s for s in scores if s.person_id == person_id]
