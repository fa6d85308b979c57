"""
Event effects layered over base relation scores.

Order is fixed:
1. ADD effects, summed
2. MULTIPLY effects, in sequence
3. DECAY effects: value * decay_per_day ^ days_since_event_start,
   never pushing the score below zero

The result is clamped to the relation scale. Stored relation scores
are never modified.
"""

import logging
import math
import time
import uuid
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Set, Tuple

from world.standing.config import StandingConfig, get_config
from world.standing.core import (
    EFFECT_ADD,
    EFFECT_DECAY,
    EFFECT_MULTIPLY,
    SCOPE_COHORT_TO_COHORT,
    SCOPE_GLOBAL,
    SCOPE_PERSON_TO_PERSON,
    SECONDS_PER_DAY,
    Event,
    EventEffect,
)
from world.standing.repository import InMemoryRepository, StandingRepository
from world.standing.validation import NotFoundError, validate_event_effect
from world.standing.weighting import clamp

logger = logging.getLogger(__name__)

PROVENANCE_BASE = "base"
PROVENANCE_NO_RELATIONSHIP = "NO_RELATIONSHIP"

_APPLY_ORDER = (EFFECT_ADD, EFFECT_MULTIPLY, EFFECT_DECAY)


@dataclass
class AppliedEffect:
    """One effect as it was applied, for audit."""
    effect_id: str
    event_id: str
    effect_type: str
    value: float
    delta: float
    description: str


@dataclass
class EffectiveScore:
    """Base score, effective score and the effects between them."""
    from_person_id: str
    to_person_id: str
    domain: str
    base_score: float
    effective_score: float
    effects_applied: List[AppliedEffect] = field(default_factory=list)
    provenance: str = PROVENANCE_BASE
    relation_provenance: Optional[str] = None
    as_of: float = 0.0

    @property
    def effect_ids(self) -> List[str]:
        return [e.effect_id for e in self.effects_applied]

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# MATCHING
# =============================================================================

def scope_matches(
    effect: EventEffect,
    from_person_id: str,
    to_person_id: str,
    from_cohorts: Set[str],
    to_cohorts: Set[str]
) -> bool:
    """
    Check an effect's scope against a directed pair.

    COHORT_TO_COHORT and PERSON_TO_PERSON are direction-sensitive:
    "from" must sit on the source side, "to" on the target side.
    """
    if effect.scope == SCOPE_GLOBAL:
        return True
    if effect.scope == SCOPE_COHORT_TO_COHORT:
        return (
            effect.source_cohort_id in from_cohorts and
            effect.target_cohort_id in to_cohorts
        )
    if effect.scope == SCOPE_PERSON_TO_PERSON:
        return (
            effect.from_person_id == from_person_id and
            effect.to_person_id == to_person_id
        )
    return False


def domain_matches(effect: EventEffect, domain: str) -> bool:
    """An effect with no domain applies to every domain."""
    return effect.domain is None or effect.domain == domain


def effect_is_live(effect: EventEffect, event: Optional[Event], as_of: float) -> bool:
    """Effect and event both active, and the event running at as_of."""
    if not effect.is_active or event is None or not event.is_active:
        return False
    return event.is_running(as_of)


def select_effects(
    effects: List[EventEffect],
    events: Dict[str, Event],
    from_person_id: str,
    to_person_id: str,
    domain: str,
    from_cohorts: Set[str],
    to_cohorts: Set[str],
    as_of: float
) -> List[EventEffect]:
    """Live effects matching the pair's scope and domain, input order kept."""
    return [
        effect for effect in effects
        if effect_is_live(effect, events.get(effect.event_id), as_of)
        and scope_matches(effect, from_person_id, to_person_id, from_cohorts, to_cohorts)
        and domain_matches(effect, domain)
    ]


# =============================================================================
# APPLICATION
# =============================================================================

def days_since_start(event: Event, as_of: float) -> int:
    """Whole days elapsed since the event started, never negative."""
    return max(0, math.floor((as_of - event.start_date) / SECONDS_PER_DAY))


def apply_effects(
    base_score: float,
    effects: List[EventEffect],
    events: Dict[str, Event],
    as_of: float,
    scale_min: float,
    scale_max: float
) -> Tuple[float, List[AppliedEffect]]:
    """
    Layer already-selected effects over a base score.

    Pure: same inputs, same output.

    Args:
        base_score: Stored relation score
        effects: Matching effects (see select_effects)
        events: Event lookup for names and start dates
        as_of: Evaluation time
        scale_min: Lower bound of the relation scale
        scale_max: Upper bound of the relation scale

    Returns:
        (effective_score, [AppliedEffect, ...]) in application order
    """
    score = base_score
    applied: List[AppliedEffect] = []
    ordered = sorted(effects, key=lambda e: _APPLY_ORDER.index(e.effect_type))

    for effect in ordered:
        event = events[effect.event_id]
        before = score

        if effect.effect_type == EFFECT_ADD:
            score += effect.value
            description = f"{event.name}: +{effect.value}"
        elif effect.effect_type == EFFECT_MULTIPLY:
            score *= effect.value
            description = f"{event.name}: x{effect.value}"
        else:
            days = days_since_start(event, as_of)
            factor = effect.decay_per_day if effect.decay_per_day is not None else 1.0
            score = max(0.0, score + effect.value * factor ** days)
            description = f"{event.name}: {effect.value} * {factor}^{days}"

        applied.append(AppliedEffect(
            effect_id=effect.effect_id,
            event_id=effect.event_id,
            effect_type=effect.effect_type,
            value=effect.value,
            delta=score - before,
            description=description,
        ))

    return clamp(score, scale_min, scale_max), applied


class EffectEngine:
    """Computes effective scores from a repository's relations and events."""

    def __init__(
        self,
        repository: StandingRepository,
        config: Optional[StandingConfig] = None
    ):
        self.repository = repository
        self.config = config or get_config()

    def _events_for(self, effects: List[EventEffect]) -> Dict[str, Event]:
        events: Dict[str, Event] = {}
        for effect in effects:
            if effect.event_id not in events:
                event = self.repository.get_event(effect.event_id)
                if event is not None:
                    events[effect.event_id] = event
        return events

    def effective_score(
        self,
        from_person_id: str,
        to_person_id: str,
        domain: str,
        as_of: Optional[float] = None
    ) -> EffectiveScore:
        """
        Effective score of the (from, to, domain) relation at as_of.

        A pair with no stored relation scores 0 with provenance
        NO_RELATIONSHIP; effects are not applied to a missing relation.
        """
        if as_of is None:
            as_of = time.time()

        relation = self.repository.get_person_relation(from_person_id, to_person_id, domain)
        if relation is None:
            return EffectiveScore(
                from_person_id=from_person_id,
                to_person_id=to_person_id,
                domain=domain,
                base_score=0.0,
                effective_score=0.0,
                provenance=PROVENANCE_NO_RELATIONSHIP,
                as_of=as_of,
            )

        all_effects = self.repository.list_event_effects()
        events = self._events_for(all_effects)
        matching = select_effects(
            all_effects,
            events,
            from_person_id,
            to_person_id,
            domain,
            self.repository.list_person_cohorts(from_person_id),
            self.repository.list_person_cohorts(to_person_id),
            as_of,
        )

        scale = self.config.relation_scale
        effective, applied = apply_effects(
            relation.score, matching, events, as_of, scale.min_score, scale.max_score
        )

        if applied:
            provenance = ",".join(a.effect_id for a in applied)
        else:
            provenance = PROVENANCE_BASE

        logger.debug(
            f"Effective score {from_person_id}->{to_person_id} [{domain}]: "
            f"{relation.score} -> {effective} via {provenance}"
        )

        return EffectiveScore(
            from_person_id=from_person_id,
            to_person_id=to_person_id,
            domain=domain,
            base_score=relation.score,
            effective_score=effective,
            effects_applied=applied,
            provenance=provenance,
            relation_provenance=relation.provenance,
            as_of=as_of,
        )


# =============================================================================
# EVENT CREATION
# =============================================================================

def create_event(
    repository: InMemoryRepository,
    name: str,
    event_type: str,
    start_date: float,
    end_date: Optional[float] = None,
    description: str = "",
    world_seed: Optional[str] = None,
    event_id: Optional[str] = None
) -> Event:
    """Create and store an active event with no effects."""
    event = Event(
        event_id=event_id or f"event-{uuid.uuid4().hex[:12]}",
        name=name,
        event_type=event_type,
        start_date=start_date,
        end_date=end_date,
        description=description,
        world_seed=world_seed,
    )
    repository.add_event(event)
    logger.info(f"Created event {event.event_id} ({name})")
    return event


def add_event_effect(
    repository: InMemoryRepository,
    event_id: str,
    effect_type: str,
    value: float,
    scope: str,
    domain: Optional[str] = None,
    source_cohort_id: Optional[str] = None,
    target_cohort_id: Optional[str] = None,
    from_person_id: Optional[str] = None,
    to_person_id: Optional[str] = None,
    decay_per_day: Optional[float] = None,
    effect_id: Optional[str] = None
) -> EventEffect:
    """
    Validate and attach an effect to an event.

    Raises:
        ConfigurationError: If scope refs or vocabularies are wrong
        NotFoundError: If the event does not exist
    """
    if repository.get_event(event_id) is None:
        raise NotFoundError(f"Event not found: {event_id}")

    effect = EventEffect(
        effect_id=effect_id or f"effect-{uuid.uuid4().hex[:12]}",
        event_id=event_id,
        scope=scope,
        effect_type=effect_type,
        value=value,
        domain=domain,
        decay_per_day=decay_per_day,
        source_cohort_id=source_cohort_id,
        target_cohort_id=target_cohort_id,
        from_person_id=from_person_id,
        to_person_id=to_person_id,
    )
    validate_event_effect(effect)
    return repository.add_event_effect(effect)
