"""
Deterministic relation seeding from cohort-to-cohort policies.

For every ordered (source member, target member) pair of an active
policy, the outcome depends only on

    (world_seed, policy_id, source_person_id, target_person_id)

never on iteration order, wall-clock time or dict ordering. Running the
same seed against the same population reproduces the same relations.
"""

import hashlib
import logging
import math
import random
import re
import time
import uuid
from dataclasses import dataclass, field, replace, asdict
from typing import List, Optional, Set, Tuple

from world.standing.config import StandingConfig, get_config
from world.standing.core import (
    AUDIT_CREATE,
    PROVENANCE_SEEDED,
    SEEDING_ACTOR,
    PersonRelation,
    RelationAudit,
    SeedingPolicy,
)
from world.standing.repository import InMemoryRepository, StandingRepository
from world.standing.validation import ConfigurationError, NotFoundError, validate_seeding_policy
from world.standing.weighting import clamp

logger = logging.getLogger(__name__)

_VERSION_SUFFIX = re.compile(r"@v\d+$")


@dataclass
class PolicyDetail:
    policy_name: str
    source_cohort: str
    target_cohort: str
    relationships_generated: int


@dataclass
class SeedingResult:
    """
    Outcome of a seeding run, dry or real.

    success stays True when individual pairs or policies fail; their
    messages are in errors.
    """
    success: bool = True
    relationships_created: int = 0
    errors: List[str] = field(default_factory=list)
    details: List[PolicyDetail] = field(default_factory=list)
    relations: List[PersonRelation] = field(default_factory=list)
    dry_run: bool = False
    world_seed: str = ""
    claimed: Set[Tuple[str, str, str]] = field(default_factory=set, repr=False)

    def to_dict(self, include_relations: bool = False) -> dict:
        data = asdict(self)
        del data["claimed"]
        if not include_relations:
            del data["relations"]
        return data


@dataclass
class PairOutcome:
    """The draw for one ordered pair."""
    accepted: bool
    score: Optional[float]
    pair_seed: str


# =============================================================================
# DETERMINISTIC DRAWS
# =============================================================================

def pair_seed(world_seed: str, policy_id: str, source_id: str, target_id: str) -> str:
    """Stable seed string for one ordered pair under one policy."""
    return f"{world_seed}:{policy_id}:{source_id}:{target_id}"


def pair_rng(seed: str) -> random.Random:
    """
    PRNG keyed by a seed string.

    Hashes with SHA-256 so the stream does not depend on Python's
    per-process string hashing.
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def draw_pair(
    policy: SeedingPolicy,
    world_seed: str,
    source_id: str,
    target_id: str,
    scale_min: float,
    scale_max: float
) -> PairOutcome:
    """
    Bernoulli trial against probability, then a uniform score.

    The score is drawn in [score_min, score_max], rounded half-up and
    clamped to the relation scale.
    """
    seed = pair_seed(world_seed, policy.policy_id, source_id, target_id)
    rng = pair_rng(seed)

    if rng.random() >= policy.probability:
        return PairOutcome(accepted=False, score=None, pair_seed=seed)

    raw = policy.score_min + rng.random() * (policy.score_max - policy.score_min)
    score = clamp(round_half_up(raw), scale_min, scale_max)
    return PairOutcome(accepted=True, score=score, pair_seed=seed)


# =============================================================================
# ENGINE
# =============================================================================

class SeedingPolicyEngine:
    """Applies active seeding policies to cohort members."""

    def __init__(
        self,
        repository: StandingRepository,
        config: Optional[StandingConfig] = None
    ):
        self.repository = repository
        self.config = config or get_config()

    def _cohort_name(self, cohort_id: str) -> str:
        cohort = self.repository.get_cohort(cohort_id)
        if cohort is None:
            raise NotFoundError(f"Cohort not found: {cohort_id}")
        return cohort.name

    def seed_policy(
        self,
        policy: SeedingPolicy,
        world_seed: str,
        dry_run: bool,
        result: SeedingResult,
        now: Optional[float] = None
    ) -> int:
        """
        Seed one policy, appending relations and pair errors to result.

        Returns:
            Number of relations generated (or that would be, in a dry run)

        Raises:
            NotFoundError: If either cohort is missing
        """
        if now is None:
            now = time.time()

        source_name = self._cohort_name(policy.source_cohort_id)
        target_name = self._cohort_name(policy.target_cohort_id)
        effective_seed = policy.world_seed or world_seed
        scale = self.config.relation_scale

        sources = self.repository.list_cohort_members(policy.source_cohort_id)
        targets = self.repository.list_cohort_members(policy.target_cohort_id)
        logger.info(
            f"Policy {policy.name}: {len(sources)} in {source_name}, "
            f"{len(targets)} in {target_name}"
        )

        generated = 0
        for source_id in sources:
            for target_id in targets:
                if source_id == target_id:
                    continue
                try:
                    if self._seed_pair(
                        policy, effective_seed, source_id, target_id,
                        dry_run, result, now, scale.min_score, scale.max_score
                    ):
                        generated += 1
                except Exception as e:
                    message = (
                        f"Policy {policy.name}: pair {source_id}->{target_id} failed: {e}"
                    )
                    logger.warning(message)
                    result.errors.append(message)

        return generated

    def _seed_pair(
        self,
        policy: SeedingPolicy,
        world_seed: str,
        source_id: str,
        target_id: str,
        dry_run: bool,
        result: SeedingResult,
        now: float,
        scale_min: float,
        scale_max: float
    ) -> bool:
        for person_id in (source_id, target_id):
            if self.repository.get_person(person_id) is None:
                raise NotFoundError(f"Person not found: {person_id}")

        outcome = draw_pair(policy, world_seed, source_id, target_id, scale_min, scale_max)
        if not outcome.accepted:
            return False

        key = (source_id, target_id, policy.domain)
        if key in result.claimed:
            return False
        if self.repository.get_person_relation(source_id, target_id, policy.domain) is not None:
            return False

        relation = PersonRelation(
            relation_id=f"rel-{uuid.uuid5(uuid.NAMESPACE_URL, outcome.pair_seed).hex[:16]}",
            from_person_id=source_id,
            to_person_id=target_id,
            domain=policy.domain,
            score=outcome.score,
            involvement=policy.involvement_level,
            provenance=PROVENANCE_SEEDED,
            source_ref={
                "policy_id": policy.policy_id,
                "policy_name": policy.name,
                "policy_version": policy.version,
                "world_seed": world_seed,
                "pair_seed": outcome.pair_seed,
            },
            created_at=now,
        )

        if not dry_run:
            if not self.repository.add_person_relation(relation):
                # Another writer claimed (from, to, domain) first
                return False
            self.repository.add_relation_audit(self._creation_audit(relation, policy, now))

        result.claimed.add(key)
        result.relations.append(relation)
        return True

    def _creation_audit(
        self,
        relation: PersonRelation,
        policy: SeedingPolicy,
        now: float
    ) -> RelationAudit:
        return RelationAudit(
            audit_id=f"audit-{relation.relation_id}",
            relation_id=relation.relation_id,
            action=AUDIT_CREATE,
            new_values={
                "from_person_id": relation.from_person_id,
                "to_person_id": relation.to_person_id,
                "domain": relation.domain,
                "involvement": relation.involvement,
                "score": relation.score,
                "provenance": relation.provenance,
            },
            changed_by=SEEDING_ACTOR,
            reason=f"Seeded by policy: {policy.name}",
            created_at=now,
        )

    def run(
        self,
        world_seed: Optional[str] = None,
        dry_run: bool = False,
        now: Optional[float] = None
    ) -> SeedingResult:
        """
        Seed relations for every active policy.

        A failing policy or pair is recorded in errors; the run always
        returns a summary.

        Args:
            world_seed: Seed string; config default if None
            dry_run: Compute without writing
            now: Timestamp stamped on created relations

        Returns:
            SeedingResult
        """
        if world_seed is None:
            world_seed = self.config.default_world_seed
        if now is None:
            now = time.time()

        result = SeedingResult(dry_run=dry_run, world_seed=world_seed)
        mode = "preview" if dry_run else "execution"

        try:
            policies = self.repository.list_seeding_policies(active_only=True)
        except Exception as e:
            logger.error(f"Seeding {mode} failed to list policies: {e}")
            result.success = False
            result.errors.append(f"Seeding failed: {e}")
            return result

        logger.info(f"Seeding {mode} with world seed {world_seed}: {len(policies)} active policies")

        for policy in policies:
            try:
                generated = self.seed_policy(policy, world_seed, dry_run, result, now)
                result.relationships_created += generated
                result.details.append(PolicyDetail(
                    policy_name=policy.name,
                    source_cohort=self._cohort_name(policy.source_cohort_id),
                    target_cohort=self._cohort_name(policy.target_cohort_id),
                    relationships_generated=generated,
                ))
                if not dry_run and not policy.executed:
                    self.repository.save_seeding_policy(replace(policy, executed=True))
                logger.info(f"Policy {policy.name}: {generated} relations")
            except Exception as e:
                message = f"Failed to process policy {policy.name}: {e}"
                logger.error(message)
                result.errors.append(message)

        logger.info(
            f"Seeding {mode} complete: {result.relationships_created} relations, "
            f"{len(result.errors)} errors"
        )
        return result

    def preview(self, world_seed: Optional[str] = None, now: Optional[float] = None) -> SeedingResult:
        return self.run(world_seed, dry_run=True, now=now)

    def execute(self, world_seed: Optional[str] = None, now: Optional[float] = None) -> SeedingResult:
        return self.run(world_seed, dry_run=False, now=now)


# =============================================================================
# POLICY LIFECYCLE
# =============================================================================

def create_seeding_policy(
    repository: InMemoryRepository,
    name: str,
    source_cohort_id: str,
    target_cohort_id: str,
    domain: str,
    probability: float = 0.5,
    involvement_level: str = "FRIEND",
    score_min: float = 40,
    score_max: float = 80,
    world_seed: Optional[str] = None,
    description: str = "",
    policy_id: Optional[str] = None
) -> SeedingPolicy:
    """
    Validate and store a new active policy.

    Raises:
        ConfigurationError: If the policy is malformed
        NotFoundError: If a cohort does not exist
    """
    for cohort_id in (source_cohort_id, target_cohort_id):
        if repository.get_cohort(cohort_id) is None:
            raise NotFoundError(f"Cohort not found: {cohort_id}")

    policy = SeedingPolicy(
        policy_id=policy_id or f"policy-{uuid.uuid4().hex[:12]}",
        name=name,
        source_cohort_id=source_cohort_id,
        target_cohort_id=target_cohort_id,
        domain=domain,
        probability=probability,
        involvement_level=involvement_level,
        score_min=score_min,
        score_max=score_max,
        world_seed=world_seed,
        description=description,
    )
    return repository.add_seeding_policy(policy)


def set_policy_active(repository: StandingRepository, policy_id: str, active: bool) -> SeedingPolicy:
    """Toggle a policy. Allowed whether or not it has been executed."""
    policy = repository.get_seeding_policy(policy_id)
    if policy is None:
        raise NotFoundError(f"Seeding policy not found: {policy_id}")
    updated = replace(policy, is_active=active)
    repository.save_seeding_policy(updated)
    return updated


def revise_policy(
    repository: StandingRepository,
    policy_id: str,
    config: Optional[StandingConfig] = None,
    **changes
) -> Tuple[SeedingPolicy, bool]:
    """
    Change a policy without breaking reproducibility.

    A policy that has never been executed is edited in place. An executed
    policy is frozen: it is deactivated and a new version is stored under
    "<root>@v<n>", so relations already seeded keep a policy that matches.
    n is one past the highest version of any policy sharing the root, so
    revising a stale version never replaces a newer one.

    Args:
        repository: Store holding the policy
        policy_id: Policy to revise
        config: Supplies the relation scale; active config if None
        **changes: SeedingPolicy fields to change

    Returns:
        (resulting policy, True if a new version was created)

    Raises:
        NotFoundError: If the policy does not exist
        ConfigurationError: If the revised policy is malformed or its id
            is already taken
    """
    policy = repository.get_seeding_policy(policy_id)
    if policy is None:
        raise NotFoundError(f"Seeding policy not found: {policy_id}")

    for frozen in ("policy_id", "version", "executed"):
        changes.pop(frozen, None)

    if not policy.executed:
        updated = replace(policy, **changes)
        repository.save_seeding_policy(updated)
        return updated, False

    root = _VERSION_SUFFIX.sub("", policy.policy_id)
    version = 1 + max(
        p.version for p in repository.list_seeding_policies(active_only=False)
        if _VERSION_SUFFIX.sub("", p.policy_id) == root
    )
    changes.setdefault("is_active", True)
    revised = replace(
        policy,
        policy_id=f"{root}@v{version}",
        version=version,
        executed=False,
        **changes
    )
    validate_seeding_policy(revised, (config or get_config()).relation_scale)
    if repository.get_seeding_policy(revised.policy_id) is not None:
        raise ConfigurationError(f"Seeding policy already exists: {revised.policy_id}")
    repository.save_seeding_policy(replace(policy, is_active=False))
    repository.save_seeding_policy(revised)
    logger.info(f"Policy {policy.policy_id} frozen; revised as {revised.policy_id}")
    return revised, True
