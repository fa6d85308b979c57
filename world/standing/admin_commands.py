"""
Admin commands for standing inspection.

Plain functions returning display text; a command handler in the game
or a CLI wires them to input.
"""

from typing import Optional
import time

from world.standing.effects import EffectEngine
from world.standing.involvement import InvolvementScorer
from world.standing.orchestrator import ScoringOrchestrator
from world.standing.repository import StandingRepository
from world.standing.seeding import SeedingResult


def _format_time(timestamp: float) -> str:
    return time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(timestamp))


def cmd_involvement_inspect(
    repository: StandingRepository,
    person_id: str,
    now: Optional[float] = None
) -> str:
    """
    Admin command: involvement/inspect <person>

    Show a fresh involvement score with its five components.
    Nothing is written.

    Args:
        repository: Store to read
        person_id: Person to inspect
        now: Current timestamp

    Returns:
        Formatted string for admin display
    """
    if now is None:
        now = time.time()

    person = repository.get_person(person_id)
    if person is None:
        return f"No such person: {person_id}"

    scorer = InvolvementScorer(repository)
    result = scorer.calculate(person_id, now)
    weights = result.metadata["weights"]

    output = []
    output.append(f"Involvement Inspection: {person.name}")
    output.append(f"  Person ID: {person_id}")
    output.append(f"  Window: {result.window}")
    output.append(f"  Score: {result.score:.3f}")
    output.append("")
    output.append("Components:")
    for component, value in result.breakdown.items():
        output.append(f"  {component}: {value:.3f} (weight {weights[component]:.2f})")

    stored = repository.get_involvement_score(person_id)
    output.append("")
    if stored is not None:
        output.append(f"Stored score: {stored.score:.3f} at {_format_time(stored.updated_at)}")
    else:
        output.append("Stored score: none")

    return "\n".join(output)


def cmd_loyalty_top(
    repository: StandingRepository,
    person_id: str,
    limit: int = 5
) -> str:
    """
    Admin command: loyalty/top <person> [limit]

    List the person's strongest stored loyalties.
    """
    person = repository.get_person(person_id)
    name = person.name if person else person_id

    top = ScoringOrchestrator(repository).get_top_loyalty_targets(person_id, limit)

    output = []
    output.append(f"Top Loyalties: {name}")
    output.append("")
    if top:
        for i, entry in enumerate(top):
            output.append(f"  {i+1}. {entry.target_name} ({entry.target_type}): {entry.score:.3f}")
    else:
        output.append("  (no loyalty scores stored)")

    return "\n".join(output)


def cmd_seeding_report(result: SeedingResult) -> str:
    """
    Admin command: seeding/preview, seeding/execute

    Summarize a seeding run per policy.
    """
    mode = "Preview" if result.dry_run else "Execution"

    output = []
    output.append(f"Seeding {mode}: world seed {result.world_seed}")
    output.append(f"  Relations: {result.relationships_created}")
    output.append(f"  Errors: {len(result.errors)}")
    output.append("")
    output.append("Policies:")

    if result.details:
        for detail in result.details:
            output.append(
                f"  {detail.policy_name}: {detail.source_cohort} -> {detail.target_cohort}, "
                f"{detail.relationships_generated} relations"
            )
    else:
        output.append("  (no active policies)")

    for error in result.errors:
        output.append(f"  ! {error}")

    return "\n".join(output)


def cmd_effective_score(
    repository: StandingRepository,
    from_person_id: str,
    to_person_id: str,
    domain: str,
    as_of: Optional[float] = None
) -> str:
    """
    Admin command: relation/effective <from> <to> <domain>

    Show base and effective score and each effect applied on the way.
    """
    result = EffectEngine(repository).effective_score(from_person_id, to_person_id, domain, as_of)

    output = []
    output.append(f"Effective Score: {from_person_id} -> {to_person_id} [{domain}]")
    output.append(f"  Base: {result.base_score:.1f}")
    output.append(f"  Effective: {result.effective_score:.1f}")
    output.append(f"  Provenance: {result.provenance}")
    output.append("")
    output.append("Effects Applied:")

    if result.effects_applied:
        for effect in result.effects_applied:
            output.append(f"  {effect.effect_type} {effect.description} ({effect.delta:+.1f})")
    else:
        output.append("  (none)")

    return "\n".join(output)


def cmd_score_summary(repository: StandingRepository) -> str:
    """
    Admin command: standing/summary

    Counts, averages and distributions of stored scores.
    """
    stats = ScoringOrchestrator(repository).get_scoring_statistics()

    output = []
    output.append("Standing Summary")
    output.append(f"  People: {stats['total_people']}")
    output.append(f"  With involvement scores: {stats['people_with_involvement_scores']}")
    output.append(f"  With loyalty scores: {stats['people_with_loyalty_scores']}")
    output.append(f"  Average involvement: {stats['average_involvement_score']:.3f}")
    output.append(f"  Average loyalty: {stats['average_loyalty_score']:.3f}")

    for kind in ("involvement", "loyalty"):
        output.append("")
        output.append(f"{kind.capitalize()} Distribution:")
        for bucket, count in stats["score_distribution"][kind].items():
            output.append(f"  {bucket}: {count}")

    return "\n".join(output)


def cmd_cohort_summary(repository: StandingRepository) -> str:
    """
    Admin command: cohort/summary

    Members, touching relations and average base score per cohort.
    """
    summaries = ScoringOrchestrator(repository).get_cohort_statistics()

    output = []
    output.append("Cohort Summary")
    output.append("")
    if summaries:
        for summary in summaries:
            output.append(
                f"  {summary.name}: {summary.member_count} members, "
                f"{summary.relation_count} relations, avg score {summary.average_score:.1f}"
            )
    else:
        output.append("  (no cohorts)")

    return "\n".join(output)
