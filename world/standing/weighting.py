"""
Weighted scoring shared by the involvement and loyalty scorers.

Keeps both formulas declarative: a breakdown dict, a weight dict,
one weighted sum, one clamp.
"""

import time
from typing import Dict, Optional

from world.standing.config import StandingConfig, get_config
from world.standing.core import SECONDS_PER_DAY

SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def days_between(earlier: float, later: float) -> float:
    """Elapsed days from earlier to later (negative if reversed)."""
    return (later - earlier) / SECONDS_PER_DAY


def duration_weight(since: float, now: float) -> float:
    """
    Linear ramp to full weight over one year.

        min(days_since / 365, 1.0)

    Timestamps in the future count as zero.
    """
    return clamp(days_between(since, now) / 365, 0.0, 1.0)


class WeightedScorer:
    """
    Weighted sum, clamp and time-decay weight.

    Holds only read-only configuration; safe to share across threads.
    """

    def __init__(self, config: Optional[StandingConfig] = None):
        self.config = config or get_config()

    def clamp(self, score: float) -> float:
        """Clamp to the configured [min_score, max_score]."""
        return clamp(score, self.config.min_score, self.config.max_score)

    def weighted_score(
        self,
        breakdown: Dict[str, float],
        weights: Dict[str, float]
    ) -> float:
        """
        Combine a component breakdown with its weight table.

            score = clamp(sum(component_i * weight_i))

        Components missing from the breakdown count as 0.

        Args:
            breakdown: Component name -> value
            weights: Component name -> weight

        Returns:
            Clamped weighted score
        """
        raw = 0.0
        for name, weight in weights.items():
            raw += breakdown.get(name, 0.0) * weight
        return self.clamp(raw)

    def time_weight(
        self,
        start: float,
        end: Optional[float] = None,
        now: Optional[float] = None
    ) -> float:
        """
        Exponential weekly decay for an interval.

            weight = decay_factor ^ weeks_since(end or now)

        An open interval (end is None) ends now, so weighs 1.0.

        Args:
            start: Interval start (kept for symmetry with stored intervals)
            end: Interval end, or None if still open
            now: Evaluation time. If None, uses current time.

        Returns:
            Weight in (0, 1]; 1.0 when decay is disabled
        """
        if not self.config.enable_decay:
            return 1.0
        if now is None:
            now = time.time()
        interval_end = end if end is not None else now
        weeks_ago = max(0.0, (now - interval_end) / SECONDS_PER_WEEK)
        return self.config.window.decay_factor ** weeks_ago
