"""
Entry points for callers outside the package.

Every method returns plain dicts and lists that serialize to JSON as-is.
Single-entity calls raise ComputationError on store failure; batch calls
always return a summary.
"""

import logging
from dataclasses import asdict
from typing import Optional

from world.standing.config import StandingConfig, get_config
from world.standing.effects import EffectEngine
from world.standing.orchestrator import ScoringOrchestrator
from world.standing.repository import StandingRepository
from world.standing.seeding import SeedingPolicyEngine

logger = logging.getLogger(__name__)


class StandingService:
    """Facade over scoring, seeding and effective scores for one store."""

    def __init__(
        self,
        repository: StandingRepository,
        config: Optional[StandingConfig] = None,
        max_workers: Optional[int] = None
    ):
        self.repository = repository
        self.config = config or get_config()
        self.orchestrator = ScoringOrchestrator(repository, self.config, max_workers)
        self.seeding = SeedingPolicyEngine(repository, self.config)
        self.effects = EffectEngine(repository, self.config)

    def compute_involvement(self, person_id: str, now: Optional[float] = None) -> dict:
        """Compute, store and return {score, breakdown, window, calculated_at}."""
        result = self.orchestrator.calculate_and_save_involvement(person_id, now)
        return result.to_dict()

    def compute_loyalty(
        self,
        person_id: str,
        target_id: str,
        now: Optional[float] = None
    ) -> dict:
        result = self.orchestrator.calculate_and_save_loyalty(person_id, target_id, now)
        return result.to_dict()

    def recalculate_all(self, timeout: Optional[float] = None, now: Optional[float] = None) -> dict:
        """{total_people, processed_people, errors[]} for a full recompute."""
        return self.orchestrator.recalculate_all_scores(timeout=timeout, now=now).to_dict()

    def preview_seeding(self, world_seed: Optional[str] = None, now: Optional[float] = None) -> dict:
        """
        Dry-run every active policy.

        Returns:
            {success, relationships_created, errors, details, dry_run, world_seed}
        """
        return self.seeding.preview(world_seed, now).to_dict()

    def execute_seeding(self, world_seed: Optional[str] = None, now: Optional[float] = None) -> dict:
        return self.seeding.execute(world_seed, now).to_dict()

    def effective_score(
        self,
        from_person_id: str,
        to_person_id: str,
        domain: str,
        as_of: Optional[float] = None
    ) -> dict:
        """{base_score, effective_score, effects_applied[], provenance, ...}"""
        return self.effects.effective_score(from_person_id, to_person_id, domain, as_of).to_dict()

    def statistics(self) -> dict:
        return self.orchestrator.get_scoring_statistics()

    def cohort_statistics(self) -> list:
        """[{cohort_id, name, color, member_count, relation_count, average_score}]"""
        return [asdict(s) for s in self.orchestrator.get_cohort_statistics()]

    def relation_history(self, relation_id: str) -> list:
        """Audit rows for one relation, oldest first."""
        return [asdict(a) for a in self.repository.list_relation_audits(relation_id)]
