"""
Core data structures for the standing system.

Plain records only. Reads and writes go through a StandingRepository;
nothing here talks to a store.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import time


SECONDS_PER_DAY = 86400

# =============================================================================
# VOCABULARIES
# =============================================================================

DOMAINS = {"KINSHIP", "FACTION", "WORK"}

SCOPE_GLOBAL = "GLOBAL"
SCOPE_COHORT_TO_COHORT = "COHORT_TO_COHORT"
SCOPE_PERSON_TO_PERSON = "PERSON_TO_PERSON"
EFFECT_SCOPES = {SCOPE_GLOBAL, SCOPE_COHORT_TO_COHORT, SCOPE_PERSON_TO_PERSON}

EFFECT_ADD = "ADD"
EFFECT_MULTIPLY = "MULTIPLY"
EFFECT_DECAY = "DECAY"
EFFECT_TYPES = {EFFECT_ADD, EFFECT_MULTIPLY, EFFECT_DECAY}

INVOLVEMENT_TIERS = {"ACQUAINTANCE", "FRIEND", "ALLY", "RIVAL", "ENEMY"}

PROVENANCE_SEEDED = "SEEDED"
PROVENANCE_MANUAL = "MANUAL"

AUDIT_CREATE = "CREATE"
SEEDING_ACTOR = "seeding-algorithm"

TARGET_FACTION = "faction"
TARGET_PERSON = "person"


# =============================================================================
# PEOPLE AND GROUPS
# =============================================================================

@dataclass
class Membership:
    """A person's seat in a faction."""
    faction_id: str
    role: str
    joined_at: float
    left_at: Optional[float] = None
    alignment: float = 0.0  # -100..100

    @property
    def is_current(self) -> bool:
        return self.left_at is None


@dataclass
class Person:
    """
    A villager.

    Identity (person_id) never changes; the rest is edited elsewhere.
    """
    person_id: str
    name: str
    species: str = "human"
    age: Optional[int] = None
    occupation: Optional[str] = None
    household_id: Optional[str] = None
    workplace_id: Optional[str] = None
    workplace_type: Optional[str] = None
    memberships: List[Membership] = field(default_factory=list)

    def membership_in(self, faction_id: str) -> Optional[Membership]:
        """First membership in the given faction, if any."""
        for membership in self.memberships:
            if membership.faction_id == faction_id:
                return membership
        return None


@dataclass
class Faction:
    faction_id: str
    name: str
    description: str = ""


@dataclass
class Cohort:
    """Operator-defined group used as the unit of seeding and effect targeting."""
    cohort_id: str
    name: str
    color: str = "#888888"
    description: str = ""


@dataclass
class CohortMembership:
    cohort_id: str
    person_id: str
    notes: str = ""
    joined_at: float = field(default_factory=time.time)


# =============================================================================
# EDGES
# =============================================================================

@dataclass
class Relationship:
    """
    Social graph edge read by the scorers.

    kind is free text (KIN, FRIEND, PATRONAGE, COMMAND, ...).
    """
    relationship_id: str
    src_id: str
    dst_id: str
    kind: str
    weight: float = 0.5       # 0.0–1.0
    sentiment: float = 0.0    # -1.0–1.0
    created_at: float = field(default_factory=time.time)

    def touches(self, person_id: str) -> bool:
        return self.src_id == person_id or self.dst_id == person_id

    def connects(self, a: str, b: str) -> bool:
        """True if this edge joins a and b in either direction."""
        return (self.src_id == a and self.dst_id == b) or (self.src_id == b and self.dst_id == a)


@dataclass
class PersonRelation:
    """
    Directed domain relation with a base score on the relation scale.

    Unique on (from_person_id, to_person_id, domain). Effects never
    change score; they produce a separate effective score.
    """
    relation_id: str
    from_person_id: str
    to_person_id: str
    domain: str
    score: float
    involvement: str = "FRIEND"
    provenance: str = PROVENANCE_MANUAL
    source_ref: Dict[str, Any] = field(default_factory=dict)
    created_at: float = field(default_factory=time.time)

    @property
    def key(self):
        return (self.from_person_id, self.to_person_id, self.domain)


@dataclass
class RelationAudit:
    """Append-only record of a change to a PersonRelation."""
    audit_id: str
    relation_id: str
    action: str
    new_values: Dict[str, Any]
    changed_by: str
    reason: str = ""
    created_at: float = field(default_factory=time.time)


# =============================================================================
# POLICIES AND EVENTS
# =============================================================================

@dataclass
class SeedingPolicy:
    """
    Directed relation-generation rule from one cohort to another.

    Once executed the policy is locked; see seeding.revise_policy().
    """
    policy_id: str
    name: str
    source_cohort_id: str
    target_cohort_id: str
    domain: str
    probability: float = 0.5
    involvement_level: str = "FRIEND"
    score_min: float = 40
    score_max: float = 80
    world_seed: Optional[str] = None
    is_active: bool = True
    description: str = ""
    version: int = 1
    executed: bool = False


@dataclass
class EventEffect:
    """
    One modifier carried by an event.

    Scope decides which refs are required:
    GLOBAL none, COHORT_TO_COHORT both cohorts, PERSON_TO_PERSON both people.
    """
    effect_id: str
    event_id: str
    scope: str
    effect_type: str
    value: float
    domain: Optional[str] = None
    decay_per_day: Optional[float] = None
    source_cohort_id: Optional[str] = None
    target_cohort_id: Optional[str] = None
    from_person_id: Optional[str] = None
    to_person_id: Optional[str] = None
    is_active: bool = True


@dataclass
class Event:
    event_id: str
    name: str
    event_type: str
    start_date: float
    end_date: Optional[float] = None
    description: str = ""
    world_seed: Optional[str] = None
    is_active: bool = True
    effects: List[EventEffect] = field(default_factory=list)

    def overlaps(self, window_start: float, window_end: float) -> bool:
        """True if [start_date, end_date] intersects the window. Open-ended events are ongoing."""
        end = self.end_date if self.end_date is not None else float("inf")
        return self.start_date <= window_end and end >= window_start

    def is_running(self, at: float) -> bool:
        if at < self.start_date:
            return False
        return self.end_date is None or at <= self.end_date


# =============================================================================
# SCORES
# =============================================================================

@dataclass
class ScoringResult:
    """Output of a single involvement or loyalty computation."""
    score: float
    breakdown: Dict[str, float]
    window: str
    calculated_at: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class InvolvementScore:
    """Stored involvement, one row per person."""
    person_id: str
    score: float
    breakdown: Dict[str, float]
    window: str
    updated_at: float


@dataclass
class LoyaltyScore:
    """Stored loyalty, one row per (person, target)."""
    person_id: str
    target_id: str
    target_type: str
    score: float
    breakdown: Dict[str, float]
    window: str
    updated_at: float
