"""
Involvement scoring: how active and central a person is.

    I = 0.35*RA + 0.25*EP + 0.20*NC + 0.10*IN + 0.10*RE

Each component is clamped to [0, 1] before weighting; the total is
clamped again. Weights come from config, not from code.
"""

import time
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from world.standing.config import StandingConfig, get_config
from world.standing.core import (
    SECONDS_PER_DAY,
    InvolvementScore,
    Membership,
    Person,
    ScoringResult,
)
from world.standing.repository import StandingRepository
from world.standing.tables import (
    faction_activity,
    initiative_weight,
    occupation_weight,
    role_weight,
    workplace_weight,
)
from world.standing.weighting import WeightedScorer, clamp, duration_weight

WORKPLACE_COMMITMENT = 0.5
OCCUPATION_COMMITMENT = 0.3
PARTICIPATION_RATE = 0.5
BASE_RELIABILITY = 0.5
STABILITY_BONUS = 0.3


@dataclass
class InvolvementBreakdown:
    role_activity: float = 0.0
    event_participation: float = 0.0
    network_centrality: float = 0.0
    initiative: float = 0.0
    reliability: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def _in_window(membership: Membership, window_start: float) -> bool:
    """Memberships that ended before the window opened do not count."""
    return membership.left_at is None or membership.left_at >= window_start


class InvolvementScorer:
    """Computes and stores involvement scores."""

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
        return f"{self.config.window.involvement_days}d"

    def _window_start(self, now: float) -> float:
        return now - self.config.window.involvement_days * SECONDS_PER_DAY

    # =========================================================================
    # COMPONENTS
    # =========================================================================

    def role_activity(self, person: Person, now: float) -> float:
        """
        RA: recurring duties.

        Faction roles weighted by recency, plus workplace and occupation
        contributions at fixed commitment levels.
        """
        window_start = self._window_start(now)
        activity = 0.0

        for membership in person.memberships:
            if not _in_window(membership, window_start):
                continue
            activity += role_weight(membership.role) * self.weighted.time_weight(
                membership.joined_at, membership.left_at, now
            )

        if person.workplace_id or person.workplace_type:
            activity += workplace_weight(person.workplace_type) * WORKPLACE_COMMITMENT

        if person.occupation:
            activity += occupation_weight(person.occupation) * OCCUPATION_COMMITMENT

        return clamp(activity, 0.0, 1.0)

    def event_participation(self, person: Person, now: float) -> float:
        """
        EP: faction activity spread over the events in the lookback window.

        Zero events gives 0, never a division by zero.
        """
        window_start = self._window_start(now)
        events = self.repository.list_events(window_start, now)
        if not events:
            return 0.0

        participation = 0.0
        for membership in person.memberships:
            if not _in_window(membership, window_start):
                continue
            faction = self.repository.get_faction(membership.faction_id)
            faction_name = faction.name if faction else None
            participation += faction_activity(faction_name) * PARTICIPATION_RATE

        return clamp(min(participation / len(events), 1.0), 0.0, 1.0)

    def network_centrality(self, person: Person) -> float:
        """
        NC: degree centrality.

        Edges in either direction over a fixed cap. Degree is the
        proxy; betweenness and eigenvector are not computed.
        """
        degree = len(self.repository.list_relationships(person.person_id))
        if degree == 0:
            return 0.0
        return clamp(min(degree / self.config.network_degree_cap, 1.0), 0.0, 1.0)

    def initiative(self, person: Person) -> float:
        """IN: initiative weight of each current role."""
        total = 0.0
        for membership in person.memberships:
            if membership.is_current:
                total += initiative_weight(membership.role)
        return clamp(total, 0.0, 1.0)

    def reliability(self, person: Person, now: float) -> float:
        """
        RE: membership stability.

        Base 0.5 plus up to 0.3 per still-active membership, ramping
        over its first year.
        """
        score = BASE_RELIABILITY
        for membership in person.memberships:
            if membership.is_current:
                score += duration_weight(membership.joined_at, now) * STABILITY_BONUS
        return clamp(score, 0.0, 1.0)

    # =========================================================================
    # SCORE
    # =========================================================================

    def breakdown(self, person: Person, now: float) -> InvolvementBreakdown:
        return InvolvementBreakdown(
            role_activity=self.role_activity(person, now),
            event_participation=self.event_participation(person, now),
            network_centrality=self.network_centrality(person),
            initiative=self.initiative(person),
            reliability=self.reliability(person, now),
        )

    def calculate(self, person_id: str, now: Optional[float] = None) -> ScoringResult:
        """
        Compute involvement for one person.

        A missing person yields a zero score with metadata["missing"] set;
        store failures propagate.

        Args:
            person_id: Person to score
            now: Evaluation time for deterministic replay

        Returns:
            ScoringResult with score, five-part breakdown and window
        """
        if now is None:
            now = time.time()

        person = self.repository.get_person(person_id)
        metadata = {
            "weights": self.config.weights.involvement.as_dict(),
            "decay_enabled": self.config.enable_decay,
            "person_id": person_id,
        }

        if person is None:
            metadata["missing"] = True
            return ScoringResult(
                score=0.0,
                breakdown=InvolvementBreakdown().as_dict(),
                window=self.window_label,
                calculated_at=now,
                metadata=metadata,
            )

        parts = self.breakdown(person, now).as_dict()
        score = self.weighted.weighted_score(parts, self.config.weights.involvement.as_dict())

        return ScoringResult(
            score=score,
            breakdown=parts,
            window=self.window_label,
            calculated_at=now,
            metadata=metadata,
        )

    def save(self, person_id: str, result: ScoringResult) -> InvolvementScore:
        """Upsert the person's single involvement row, replacing any prior value."""
        row = InvolvementScore(
            person_id=person_id,
            score=result.score,
            breakdown=dict(result.breakdown),
            window=result.window,
            updated_at=result.calculated_at,
        )
        self.repository.upsert_involvement_score(row)
        return row

    def load(self, person_id: str) -> Optional[ScoringResult]:
        """Stored involvement as a ScoringResult, or None."""
        row = self.repository.get_involvement_score(person_id)
        if row is None:
            return None
        return ScoringResult(
            score=row.score,
            breakdown=dict(row.breakdown),
            window=row.window,
            calculated_at=row.updated_at,
            metadata={"person_id": person_id},
        )
