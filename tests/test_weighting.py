"""
Tests for shared weighting helpers.

See world/standing/weighting.py for implementation.
"""

from dataclasses import replace

import pytest

from world.standing.config import get_default_config
from world.standing.weighting import (
    SECONDS_PER_WEEK,
    WeightedScorer,
    clamp,
    days_between,
    duration_weight,
)
from tests.helpers import NOW, days_ago


def test_clamp_bounds():
    assert clamp(1.5, 0.0, 1.0) == 1.0
    assert clamp(-0.2, 0.0, 1.0) == 0.0
    assert clamp(0.4, 0.0, 1.0) == 0.4


def test_days_between():
    assert days_between(days_ago(3), NOW) == pytest.approx(3.0)
    assert days_between(NOW, days_ago(3)) == pytest.approx(-3.0)


def test_duration_weight_ramps_over_a_year():
    assert duration_weight(NOW, NOW) == 0.0
    assert duration_weight(days_ago(182.5), NOW) == pytest.approx(0.5)
    assert duration_weight(days_ago(365), NOW) == pytest.approx(1.0)
    assert duration_weight(days_ago(400), NOW) == 1.0


def test_duration_weight_future_is_zero():
    assert duration_weight(NOW + 86400, NOW) == 0.0


def test_weighted_score_all_ones_is_one():
    """Weights sum to 1, so all-ones components give 1.0."""
    scorer = WeightedScorer()
    weights = scorer.config.weights.involvement.as_dict()
    breakdown = {name: 1.0 for name in weights}

    assert scorer.weighted_score(breakdown, weights) == pytest.approx(1.0)


def test_weighted_score_missing_component_counts_as_zero():
    scorer = WeightedScorer()
    weights = scorer.config.weights.involvement.as_dict()

    assert scorer.weighted_score({"role_activity": 1.0}, weights) == pytest.approx(0.35)


def test_weighted_score_is_clamped():
    scorer = WeightedScorer()
    weights = scorer.config.weights.loyalty.as_dict()
    breakdown = {name: 5.0 for name in weights}

    assert scorer.weighted_score(breakdown, weights) == 1.0


def test_time_weight_open_interval_is_full():
    scorer = WeightedScorer()
    assert scorer.time_weight(days_ago(100), None, NOW) == 1.0


def test_time_weight_decays_weekly():
    scorer = WeightedScorer()
    two_weeks_ago = NOW - 2 * SECONDS_PER_WEEK

    assert scorer.time_weight(days_ago(100), two_weeks_ago, NOW) == pytest.approx(0.81)


def test_time_weight_disabled_decay():
    config = replace(get_default_config(), enable_decay=False)
    scorer = WeightedScorer(config)

    assert scorer.time_weight(days_ago(100), days_ago(50), NOW) == 1.0
