"""
Standing System - Involvement, Loyalty and Seeded Relations

Scores how involved each villager is and how loyal they are to factions
and to each other, seeds directed relations between cohorts from a world
seed, and layers event effects over relation scores.
"""

from world.standing.core import (
    Person,
    Membership,
    Faction,
    Cohort,
    CohortMembership,
    Relationship,
    PersonRelation,
    RelationAudit,
    SeedingPolicy,
    Event,
    EventEffect,
    ScoringResult,
)
from world.standing.config import (
    StandingConfig,
    get_config,
    set_config,
    reset_config,
    load_config_from_yaml,
)
from world.standing.validation import (
    StandingError,
    NotFoundError,
    ConfigurationError,
    ComputationError,
)
from world.standing.repository import StandingRepository, InMemoryRepository
from world.standing.involvement import InvolvementScorer
from world.standing.loyalty import LoyaltyScorer
from world.standing.effects import EffectEngine, EffectiveScore
from world.standing.seeding import SeedingPolicyEngine, SeedingResult
from world.standing.orchestrator import ScoringOrchestrator, BatchReport, CohortSummary
from world.standing.service import StandingService

__all__ = [
    # Core data structures
    "Person",
    "Membership",
    "Faction",
    "Cohort",
    "CohortMembership",
    "Relationship",
    "PersonRelation",
    "RelationAudit",
    "SeedingPolicy",
    "Event",
    "EventEffect",
    "ScoringResult",
    # Configuration
    "StandingConfig",
    "get_config",
    "set_config",
    "reset_config",
    "load_config_from_yaml",
    # Errors
    "StandingError",
    "NotFoundError",
    "ConfigurationError",
    "ComputationError",
    # Store
    "StandingRepository",
    "InMemoryRepository",
    # Scoring
    "InvolvementScorer",
    "LoyaltyScorer",
    "ScoringOrchestrator",
    "BatchReport",
    "CohortSummary",
    # Relations
    "EffectEngine",
    "EffectiveScore",
    "SeedingPolicyEngine",
    "SeedingResult",
    # Facade
    "StandingService",
]
