"""
Error taxonomy and creation-time validation for the standing system.

Ensures:
1. Seeding policies have a sane score range on the relation scale
2. Event effects carry exactly the refs their scope needs
3. Formula weights sum to 1.0

Malformed input is rejected here, never silently coerced.
"""

from typing import Dict, List

from world.standing.core import (
    DOMAINS,
    EFFECT_SCOPES,
    EFFECT_TYPES,
    INVOLVEMENT_TIERS,
    SCOPE_COHORT_TO_COHORT,
    SCOPE_GLOBAL,
    SCOPE_PERSON_TO_PERSON,
    EventEffect,
    SeedingPolicy,
)
from world.standing.config import RelationScale, StandingConfig

WEIGHT_TOLERANCE = 1e-9


# =============================================================================
# ERRORS
# =============================================================================

class StandingError(Exception):
    """Base class for standing system errors."""
    pass


class NotFoundError(StandingError):
    """Raised when a referenced person, faction, cohort or policy is missing."""
    pass


class ConfigurationError(StandingError):
    """Raised when a policy, effect or config is malformed."""
    pass


class ComputationError(StandingError):
    """Raised when the store fails mid-computation."""
    pass


# =============================================================================
# SEEDING POLICIES
# =============================================================================

def validate_seeding_policy(policy: SeedingPolicy, scale: RelationScale) -> None:
    """
    Validate a seeding policy.

    Args:
        policy: Policy to check
        scale: Relation score scale the range must sit within

    Raises:
        ConfigurationError: Listing every problem found
    """
    errors: List[str] = []

    if not policy.name:
        errors.append("name is required")
    if not policy.source_cohort_id or not policy.target_cohort_id:
        errors.append("source_cohort_id and target_cohort_id are required")
    if policy.domain not in DOMAINS:
        errors.append(f"domain '{policy.domain}' not in {sorted(DOMAINS)}")
    if policy.involvement_level not in INVOLVEMENT_TIERS:
        errors.append(
            f"involvement_level '{policy.involvement_level}' not in {sorted(INVOLVEMENT_TIERS)}"
        )
    if not 0.0 <= policy.probability <= 1.0:
        errors.append(f"probability {policy.probability} outside [0, 1]")
    if policy.score_min > policy.score_max:
        errors.append(f"score_min {policy.score_min} > score_max {policy.score_max}")
    for label, value in (("score_min", policy.score_min), ("score_max", policy.score_max)):
        if not scale.min_score <= value <= scale.max_score:
            errors.append(
                f"{label} {value} outside relation scale "
                f"[{scale.min_score}, {scale.max_score}]"
            )

    if errors:
        raise ConfigurationError(
            f"Seeding policy '{policy.policy_id}' is invalid:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )


# =============================================================================
# EVENT EFFECTS
# =============================================================================

def validate_event_effect(effect: EventEffect) -> None:
    """
    Validate an event effect against its scope.

    Raises:
        ConfigurationError: If refs do not match the scope or a field is unknown
    """
    errors: List[str] = []

    if effect.scope not in EFFECT_SCOPES:
        errors.append(f"scope '{effect.scope}' not in {sorted(EFFECT_SCOPES)}")
    if effect.effect_type not in EFFECT_TYPES:
        errors.append(f"effect_type '{effect.effect_type}' not in {sorted(EFFECT_TYPES)}")
    if effect.domain is not None and effect.domain not in DOMAINS:
        errors.append(f"domain '{effect.domain}' not in {sorted(DOMAINS)}")

    has_cohorts = effect.source_cohort_id is not None or effect.target_cohort_id is not None
    has_people = effect.from_person_id is not None or effect.to_person_id is not None

    if effect.scope == SCOPE_COHORT_TO_COHORT:
        if not effect.source_cohort_id or not effect.target_cohort_id:
            errors.append("COHORT_TO_COHORT requires source_cohort_id and target_cohort_id")
        if has_people:
            errors.append("COHORT_TO_COHORT must not carry person refs")
    elif effect.scope == SCOPE_PERSON_TO_PERSON:
        if not effect.from_person_id or not effect.to_person_id:
            errors.append("PERSON_TO_PERSON requires from_person_id and to_person_id")
        if has_cohorts:
            errors.append("PERSON_TO_PERSON must not carry cohort refs")
    elif effect.scope == SCOPE_GLOBAL:
        if has_cohorts or has_people:
            errors.append("GLOBAL must not carry cohort or person refs")

    if effect.decay_per_day is not None and effect.decay_per_day < 0:
        errors.append(f"decay_per_day {effect.decay_per_day} must be >= 0")

    if errors:
        raise ConfigurationError(
            f"Event effect '{effect.effect_id}' is invalid:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )


# =============================================================================
# CONFIGURATION
# =============================================================================

def validate_weights(weights: Dict[str, float], formula: str) -> None:
    """
    Check a weight table sums to 1.0.

    Raises:
        ConfigurationError: If the sum is off or a weight is negative
    """
    negative = [name for name, w in weights.items() if w < 0]
    if negative:
        raise ConfigurationError(f"{formula} weights must be non-negative: {negative}")

    total = sum(weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ConfigurationError(f"{formula} weights sum to {total:.6f}, expected 1.0")


def validate_config(config: StandingConfig) -> None:
    """
    Validate a complete configuration.

    Raises:
        ConfigurationError: Listing every failure found
    """
    errors: List[str] = []

    for formula, weights in (
        ("involvement", config.weights.involvement.as_dict()),
        ("loyalty", config.weights.loyalty.as_dict()),
    ):
        try:
            validate_weights(weights, formula)
        except ConfigurationError as e:
            errors.append(str(e))

    if config.min_score > config.max_score:
        errors.append(f"min_score {config.min_score} > max_score {config.max_score}")
    if config.relation_scale.min_score > config.relation_scale.max_score:
        errors.append("relation_scale.min_score > relation_scale.max_score")
    if not 0.0 < config.window.decay_factor <= 1.0:
        errors.append(f"window.decay_factor {config.window.decay_factor} outside (0, 1]")
    if config.window.involvement_days <= 0 or config.window.loyalty_days <= 0:
        errors.append("window lengths must be positive")
    if config.network_degree_cap <= 0:
        errors.append("network_degree_cap must be positive")
    if config.loyalty_person_sample < 0:
        errors.append("loyalty_person_sample must be >= 0")

    if errors:
        raise ConfigurationError(
            f"Config validation failed with {len(errors)} errors:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )
