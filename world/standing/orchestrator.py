"""
Scoring orchestration: recompute and persist standing scores.

Single-person calls propagate errors. Whole-population runs catch each
person's failure, log it and keep going, then report what happened.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from world.standing.config import StandingConfig, get_config
from world.standing.core import ScoringResult
from world.standing.involvement import InvolvementScorer
from world.standing.loyalty import LoyaltyScorer
from world.standing.repository import StandingRepository
from world.standing.validation import ComputationError, NotFoundError, StandingError

logger = logging.getLogger(__name__)

SCORE_BUCKETS = ("0.0-0.2", "0.2-0.4", "0.4-0.6", "0.6-0.8", "0.8-1.0")


@dataclass
class PersonScores:
    """Everything recomputed for one person."""
    person_id: str
    involvement: ScoringResult
    loyalties: List[ScoringResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "involvement": self.involvement.to_dict(),
            "loyalties": [r.to_dict() for r in self.loyalties],
        }


@dataclass
class BatchReport:
    """Outcome of a whole-population recompute."""
    total_people: int = 0
    processed_people: int = 0
    errors: List[str] = field(default_factory=list)
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            "total_people": self.total_people,
            "processed_people": self.processed_people,
            "errors": list(self.errors),
            "cancelled": self.cancelled,
        }


@dataclass
class LoyaltyTargetSummary:
    target_id: str
    target_name: str
    target_type: str
    score: float


@dataclass
class CohortSummary:
    cohort_id: str
    name: str
    color: str
    member_count: int
    relation_count: int
    average_score: float


def bucket_for(score: float) -> str:
    """Fixed-width bucket label; 1.0 lands in the top bucket."""
    index = min(max(int(score * len(SCORE_BUCKETS)), 0), len(SCORE_BUCKETS) - 1)
    return SCORE_BUCKETS[index]


def score_distribution(scores: List[float]) -> Dict[str, int]:
    distribution = {label: 0 for label in SCORE_BUCKETS}
    for score in scores:
        distribution[bucket_for(score)] += 1
    return distribution


def _average(scores: List[float]) -> float:
    return sum(scores) / len(scores) if scores else 0.0


class ScoringOrchestrator:
    """
    Recomputes involvement and loyalty and writes them back to the store.

    Args:
        repository: Store to read from and write to
        config: Scoring config; the active config if None
        max_workers: Thread pool size for recalculate_all_scores;
            None or 1 runs sequentially
    """

    def __init__(
        self,
        repository: StandingRepository,
        config: Optional[StandingConfig] = None,
        max_workers: Optional[int] = None
    ):
        self.repository = repository
        self.config = config or get_config()
        self.max_workers = max_workers
        self.involvement = InvolvementScorer(repository, self.config)
        self.loyalty = LoyaltyScorer(repository, self.config)
        self._cancel = threading.Event()

    # =========================================================================
    # SINGLE PERSON
    # =========================================================================

    def calculate_and_save_involvement(
        self,
        person_id: str,
        now: Optional[float] = None
    ) -> ScoringResult:
        """
        Compute and upsert a person's involvement.

        A missing person gets the neutral result and nothing is stored.

        Raises:
            ComputationError: If the store fails
        """
        try:
            result = self.involvement.calculate(person_id, now)
            if not result.metadata.get("missing"):
                self.involvement.save(person_id, result)
        except StandingError:
            raise
        except Exception as e:
            raise ComputationError(f"Involvement for {person_id} failed: {e}") from e
        return result

    def calculate_and_save_loyalty(
        self,
        person_id: str,
        target_id: str,
        now: Optional[float] = None
    ) -> ScoringResult:
        """
        Compute and upsert loyalty of person_id toward target_id.

        A missing person or target gets the neutral result and nothing
        is stored.

        Raises:
            ComputationError: If the store fails
        """
        try:
            result = self.loyalty.calculate(person_id, target_id, now)
            if not result.metadata.get("missing"):
                self.loyalty.save(person_id, target_id, result)
        except StandingError:
            raise
        except Exception as e:
            raise ComputationError(
                f"Loyalty for {person_id} -> {target_id} failed: {e}"
            ) from e
        return result

    def loyalty_targets(self, person_id: str) -> List[str]:
        """
        Every faction, then the first N other people by id.

        N is config.loyalty_person_sample.
        """
        targets = [f.faction_id for f in self.repository.list_factions()]
        others = [
            p.person_id for p in self.repository.list_people()
            if p.person_id != person_id
        ]
        targets.extend(others[:self.config.loyalty_person_sample])
        return targets

    def recalculate_person_scores(
        self,
        person_id: str,
        now: Optional[float] = None
    ) -> PersonScores:
        """
        Recompute involvement and all loyalties for one person.

        Raises:
            NotFoundError: If the person does not exist
            ComputationError: If the store fails
        """
        if now is None:
            now = time.time()

        if self.repository.get_person(person_id) is None:
            raise NotFoundError(f"Person not found: {person_id}")

        involvement = self.calculate_and_save_involvement(person_id, now)
        loyalties = [
            self.calculate_and_save_loyalty(person_id, target_id, now)
            for target_id in self.loyalty_targets(person_id)
        ]
        return PersonScores(person_id=person_id, involvement=involvement, loyalties=loyalties)

    # =========================================================================
    # WHOLE POPULATION
    # =========================================================================

    def cancel(self) -> None:
        """Stop scheduling people in the running batch. Started work finishes."""
        self._cancel.set()

    def recalculate_all_scores(
        self,
        timeout: Optional[float] = None,
        now: Optional[float] = None
    ) -> BatchReport:
        """
        Recompute scores for everyone.

        One person's failure never aborts the run: it is logged and its
        message added to errors. With a thread pool, a person that does
        not finish within timeout seconds is recorded as failed.

        Results are collected in submission order. Each wait starts when
        the collector reaches that person, not when their work starts:
        time spent queued counts against them, and time already spent
        running before the collector arrives does not. A timed-out
        person's work is not interrupted and the scores it writes are kept.

        cancel() stops people that have not started yet, sequential or
        pooled; work already running finishes.

        Args:
            timeout: Per-person wait in seconds (thread pool only)
            now: Evaluation time shared by every person

        Returns:
            BatchReport
        """
        if now is None:
            now = time.time()
        self._cancel.clear()

        people = self.repository.list_people()
        report = BatchReport(total_people=len(people))
        logger.info(f"Recalculating scores for {len(people)} people")

        if self.max_workers and self.max_workers > 1:
            self._run_pooled([p.person_id for p in people], report, timeout, now)
        else:
            for person in people:
                if self._cancel.is_set():
                    report.cancelled = True
                    break
                try:
                    self.recalculate_person_scores(person.person_id, now)
                    report.processed_people += 1
                except Exception as e:
                    self._record_failure(report, person.person_id, e)

        if report.cancelled:
            logger.warning(f"Recalculation cancelled after {report.processed_people} people")
        logger.info(
            f"Recalculated {report.processed_people}/{report.total_people} people, "
            f"{len(report.errors)} errors"
        )
        return report

    def _run_pooled(
        self,
        person_ids: List[str],
        report: BatchReport,
        timeout: Optional[float],
        now: float
    ) -> None:
        futures = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            for person_id in person_ids:
                if self._cancel.is_set():
                    report.cancelled = True
                    break
                futures.append((person_id, pool.submit(self._pooled_person, person_id, now)))

            for person_id, future in futures:
                try:
                    if future.result(timeout=timeout):
                        report.processed_people += 1
                    else:
                        report.cancelled = True
                except FutureTimeoutError:
                    self._record_failure(
                        report, person_id, ComputationError(f"timed out after {timeout}s")
                    )
                except Exception as e:
                    self._record_failure(report, person_id, e)

    def _pooled_person(self, person_id: str, now: float) -> bool:
        """Worker body. False if the batch was cancelled before this person started."""
        if self._cancel.is_set():
            return False
        self.recalculate_person_scores(person_id, now)
        return True

    def _record_failure(self, report: BatchReport, person_id: str, error: Exception) -> None:
        message = f"Failed to process person {person_id}: {error}"
        logger.error(message)
        report.errors.append(message)

    # =========================================================================
    # STORED SCORES
    # =========================================================================

    def get_involvement_score(self, person_id: str) -> Optional[ScoringResult]:
        return self.involvement.load(person_id)

    def get_loyalty_score(self, person_id: str, target_id: str) -> Optional[ScoringResult]:
        return self.loyalty.load(person_id, target_id)

    def get_all_loyalty_scores(self, person_id: str) -> List[ScoringResult]:
        return [
            self.loyalty.load(row.person_id, row.target_id)
            for row in self.repository.list_loyalty_scores(person_id)
        ]

    def get_top_loyalty_targets(
        self,
        person_id: str,
        limit: int = 5
    ) -> List[LoyaltyTargetSummary]:
        """
        Stored loyalties of a person, highest first.

        Ties are broken by target id. Targets that no longer resolve keep
        their id as the name.
        """
        rows = sorted(
            self.repository.list_loyalty_scores(person_id),
            key=lambda row: (-row.score, row.target_id),
        )
        summaries = []
        for row in rows[:limit]:
            target = self.loyalty.resolve_target(row.target_id)
            summaries.append(LoyaltyTargetSummary(
                target_id=row.target_id,
                target_name=target.name if target else row.target_id,
                target_type=target.target_type if target else row.target_type,
                score=row.score,
            ))
        return summaries

    def get_cohort_statistics(self) -> List[CohortSummary]:
        """
        Per-cohort member count, relation count and average base score.

        A relation counts for a cohort when either end is a member, so
        one relation can count toward several cohorts.
        """
        relations = self.repository.list_person_relations()
        summaries = []
        for cohort in self.repository.list_cohorts():
            members = set(self.repository.list_cohort_members(cohort.cohort_id))
            scores = [
                r.score for r in relations
                if r.from_person_id in members or r.to_person_id in members
            ]
            summaries.append(CohortSummary(
                cohort_id=cohort.cohort_id,
                name=cohort.name,
                color=cohort.color,
                member_count=len(members),
                relation_count=len(scores),
                average_score=_average(scores),
            ))
        return summaries

    def get_scoring_statistics(self) -> dict:
        """Counts, averages and bucketed distributions of stored scores."""
        involvement = [s.score for s in self.repository.list_involvement_scores()]
        loyalty_rows = self.repository.list_loyalty_scores()
        loyalty = [s.score for s in loyalty_rows]

        return {
            "total_people": len(self.repository.list_people()),
            "people_with_involvement_scores": len(involvement),
            "people_with_loyalty_scores": len({s.person_id for s in loyalty_rows}),
            "average_involvement_score": _average(involvement),
            "average_loyalty_score": _average(loyalty),
            "score_distribution": {
                "involvement": score_distribution(involvement),
                "loyalty": score_distribution(loyalty),
            },
        }
