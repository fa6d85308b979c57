"""
Loyalty scoring: how attached a person is to a faction or another person.

    L(target) = 0.25*IF + 0.25*BF + 0.20*SH + 0.15*PC + 0.15*SA

The target id is resolved once, faction first, then person. Every
component has a separate path per target kind.
"""

import time
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Union

from world.standing.config import StandingConfig, get_config
from world.standing.core import (
    SECONDS_PER_DAY,
    TARGET_FACTION,
    TARGET_PERSON,
    Faction,
    LoyaltyScore,
    Person,
    Relationship,
    ScoringResult,
)
from world.standing.repository import StandingRepository
from world.standing.tables import (
    faction_benefit,
    faction_power,
    role_benefit,
    role_pressure,
    role_weight,
    species_alignment,
    workplace_benefit,
)
from world.standing.weighting import WeightedScorer, clamp, duration_weight

PATRONAGE = "PATRONAGE"
COMMAND = "COMMAND"
AGE_SPAN_YEARS = 50


@dataclass
class LoyaltyBreakdown:
    identity_fit: float = 0.0
    benefit_flow: float = 0.0
    shared_history: float = 0.0
    pressure_cost: float = 0.0
    satisfaction: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class LoyaltyTarget:
    """A resolved loyalty target."""
    target_id: str
    target_type: str
    entity: Union[Faction, Person]

    @property
    def name(self) -> str:
        return self.entity.name


def _strongest(relationships: List[Relationship], kind: str) -> float:
    """Heaviest weight among relationships of one kind, 0.0 if none."""
    weights = [r.weight for r in relationships if r.kind.upper() == kind]
    return max(weights) if weights else 0.0


class LoyaltyScorer:
    """Computes and stores loyalty scores."""

    def __init__(
        self,
        repository: StandingRepository,
        config: Optional[StandingConfig] = None
    ):
        self.repository = repository
        self.config = config or get_config()
        self.weighted = WeightedScorer(self.config)

    @property
    def window_label(self) -> str:
        return f"{self.config.window.loyalty_days}d"

    def resolve_target(self, target_id: str) -> Optional[LoyaltyTarget]:
        """Resolve target_id as a faction, else a person, else None."""
        faction = self.repository.get_faction(target_id)
        if faction is not None:
            return LoyaltyTarget(target_id, TARGET_FACTION, faction)
        person = self.repository.get_person(target_id)
        if person is not None:
            return LoyaltyTarget(target_id, TARGET_PERSON, person)
        return None

    # =========================================================================
    # COMPONENTS
    # =========================================================================

    def household_overlap(self, person: Person, faction_id: str) -> float:
        """Share of a faction's members living in the person's household."""
        if not person.household_id:
            return 0.0
        members = self.repository.list_faction_members(faction_id)
        same_household = [m for m in members if m.household_id == person.household_id]
        return min(len(same_household) / max(len(members), 1), 1.0)

    def identity_fit(self, person: Person, target: LoyaltyTarget) -> float:
        """IF: kinship, household and cultural overlap."""
        fit = 0.0

        if target.target_type == TARGET_FACTION:
            membership = person.membership_in(target.target_id)
            if membership is not None:
                fit += 0.6
                fit += role_weight(membership.role) * 0.3
            fit += species_alignment(person.species, target.name) * 0.2
            fit += self.household_overlap(person, target.target_id) * 0.1
        else:
            other = target.entity
            if person.species and person.species == other.species:
                fit += 0.4
            if person.household_id and person.household_id == other.household_id:
                fit += 0.5
            if person.age is not None and other.age is not None:
                age_diff = abs(person.age - other.age)
                fit += max(0.0, 1 - age_diff / AGE_SPAN_YEARS) * 0.1

        return clamp(fit, 0.0, 1.0)

    def benefit_flow(self, person: Person, target: LoyaltyTarget) -> float:
        """BF: material and social benefit received from the target."""
        benefit = 0.0

        if target.target_type == TARGET_FACTION:
            membership = person.membership_in(target.target_id)
            if membership is not None:
                benefit += faction_benefit(target.name) * 0.6
                benefit += role_benefit(membership.role) * 0.3
            if person.workplace_id or person.workplace_type:
                benefit += workplace_benefit(person.workplace_type) * 0.1
        else:
            edges = self.repository.list_relationships(person.person_id, target.target_id)
            benefit += _strongest(edges, PATRONAGE) * 0.8

        return clamp(benefit, 0.0, 1.0)

    def shared_history(self, person: Person, target: LoyaltyTarget, now: float) -> float:
        """SH: length and depth of past cooperation."""
        history = 0.0

        for edge in self.repository.list_relationships(person.person_id, target.target_id):
            history += edge.weight * duration_weight(edge.created_at, now) * 0.5

        if target.target_type == TARGET_FACTION:
            membership = person.membership_in(target.target_id)
            if membership is not None:
                history += duration_weight(membership.joined_at, now) * 0.3

        return clamp(history, 0.0, 1.0)

    def pressure_cost(self, person: Person, target: LoyaltyTarget, now: float) -> float:
        """PC: what defecting would cost."""
        pressure = 0.0

        if target.target_type == TARGET_FACTION:
            membership = person.membership_in(target.target_id)
            if membership is not None:
                pressure += role_pressure(membership.role) * 0.4
                pressure += faction_power(target.name) * 0.3
                pressure += duration_weight(membership.joined_at, now) * 0.3
        else:
            edges = self.repository.list_relationships(person.person_id, target.target_id)
            pressure += _strongest(edges, COMMAND) * 0.6

        return clamp(pressure, 0.0, 1.0)

    def satisfaction(self, person: Person, target: LoyaltyTarget, now: float) -> float:
        """
        SA: sentiment of recent interactions.

        Neutral 0.5, moved by each relationship created inside the
        loyalty window (an open interval, so full weight) and, for factions, by the
        membership's alignment rescaled from -100..100 to -1..1.
        """
        score = 0.5
        window_start = now - self.config.window.loyalty_days * SECONDS_PER_DAY

        for edge in self.repository.list_relationships(person.person_id, target.target_id):
            if edge.created_at < window_start:
                continue
            weight = self.weighted.time_weight(edge.created_at, None, now)
            score += edge.sentiment * weight * 0.3

        if target.target_type == TARGET_FACTION:
            membership = person.membership_in(target.target_id)
            if membership is not None:
                score += (membership.alignment / 100) * 0.4

        return clamp(score, 0.0, 1.0)

    # =========================================================================
    # SCORE
    # =========================================================================

    def breakdown(self, person: Person, target: LoyaltyTarget, now: float) -> LoyaltyBreakdown:
        return LoyaltyBreakdown(
            identity_fit=self.identity_fit(person, target),
            benefit_flow=self.benefit_flow(person, target),
            shared_history=self.shared_history(person, target, now),
            pressure_cost=self.pressure_cost(person, target, now),
            satisfaction=self.satisfaction(person, target, now),
        )

    def calculate(
        self,
        person_id: str,
        target_id: str,
        now: Optional[float] = None
    ) -> ScoringResult:
        """
        Compute loyalty of person_id toward target_id.

        A missing person or unresolvable target yields a zero score with
        metadata["missing"] set; store failures propagate.

        Args:
            person_id: Person whose loyalty is scored
            target_id: Faction id or person id
            now: Evaluation time for deterministic replay

        Returns:
            ScoringResult with target id and type in metadata
        """
        if now is None:
            now = time.time()

        metadata = {
            "weights": self.config.weights.loyalty.as_dict(),
            "decay_enabled": self.config.enable_decay,
            "person_id": person_id,
            "target_id": target_id,
        }

        person = self.repository.get_person(person_id)
        target = self.resolve_target(target_id)
        if person is None or target is None:
            metadata["missing"] = True
            return ScoringResult(
                score=0.0,
                breakdown=LoyaltyBreakdown().as_dict(),
                window=self.window_label,
                calculated_at=now,
                metadata=metadata,
            )

        metadata["target_type"] = target.target_type
        parts = self.breakdown(person, target, now).as_dict()
        score = self.weighted.weighted_score(parts, self.config.weights.loyalty.as_dict())

        return ScoringResult(
            score=score,
            breakdown=parts,
            window=self.window_label,
            calculated_at=now,
            metadata=metadata,
        )

    def save(self, person_id: str, target_id: str, result: ScoringResult) -> LoyaltyScore:
        """Upsert the (person, target) loyalty row."""
        row = LoyaltyScore(
            person_id=person_id,
            target_id=target_id,
            target_type=result.metadata.get("target_type", ""),
            score=result.score,
            breakdown=dict(result.breakdown),
            window=result.window,
            updated_at=result.calculated_at,
        )
        self.repository.upsert_loyalty_score(row)
        return row

    def load(self, person_id: str, target_id: str) -> Optional[ScoringResult]:
        """Stored loyalty as a ScoringResult, or None."""
        row = self.repository.get_loyalty_score(person_id, target_id)
        if row is None:
            return None
        return ScoringResult(
            score=row.score,
            breakdown=dict(row.breakdown),
            window=row.window,
            calculated_at=row.updated_at,
            metadata={
                "person_id": person_id,
                "target_id": target_id,
                "target_type": row.target_type,
            },
        )
