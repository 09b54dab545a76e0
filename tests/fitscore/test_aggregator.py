"""
Tests for the FitScore aggregator.

============================================================
TEST PRINCIPLES:
- Composite zone always derives from the composite score
- all_green only when every pillar is GREEN
- Out-of-range inputs are rejected, never clamped silently
============================================================
"""

import math

import pytest

from fitscore.aggregator import FixedWeightPolicy, ScoreAggregator, WeightingPolicy
from fitscore.config import WeightingConfig
from fitscore.errors import InputUnavailable, InvalidPillarScore
from fitscore.types import Pillar, PillarScore, Zone


def _pillars(nutrition=7.0, training=7.0, recovery=7.0, meals=2, sessions=1):
    return (
        PillarScore(Pillar.NUTRITION, nutrition, meals),
        PillarScore(Pillar.TRAINING, training, sessions),
        PillarScore(Pillar.RECOVERY, recovery, 0),
    )


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def aggregator(clock):
    return ScoreAggregator(FixedWeightPolicy(), clock)


# ============================================================
# POLICY TESTS
# ============================================================

class TestFixedWeightPolicy:
    """Tests for weighted combination."""

    def test_equal_weights_is_mean(self):
        """Test default weights give the plain mean."""
        policy = FixedWeightPolicy()
        nutrition, training, recovery = _pillars(6.0, 8.0, 7.0)

        result = policy.combine({
            Pillar.NUTRITION: nutrition,
            Pillar.TRAINING: training,
            Pillar.RECOVERY: recovery,
        })

        assert result == pytest.approx(7.0)

    def test_weights_are_normalized(self):
        """Test weights need not sum to one."""
        policy = FixedWeightPolicy(WeightingConfig(recovery=2.0, training=1.0, nutrition=1.0))
        nutrition, training, recovery = _pillars(4.0, 4.0, 8.0)

        result = policy.combine({
            Pillar.NUTRITION: nutrition,
            Pillar.TRAINING: training,
            Pillar.RECOVERY: recovery,
        })

        assert result == pytest.approx(6.0)

    def test_rejects_zero_weights(self):
        """Test all-zero weights are invalid."""
        with pytest.raises(ValueError):
            FixedWeightPolicy(WeightingConfig(recovery=0.0, training=0.0, nutrition=0.0))

    def test_rejects_negative_weight(self):
        with pytest.raises(ValueError):
            FixedWeightPolicy(WeightingConfig(recovery=-1.0, training=1.0, nutrition=1.0))


# ============================================================
# AGGREGATOR TESTS
# ============================================================

class TestScoreAggregator:
    """Tests for CompositeScore construction."""

    def test_composite_rounded_to_one_decimal(self, aggregator, today):
        """Test fit score is rounded half-up to one decimal."""
        score = aggregator.aggregate(today, *_pillars(6.0, 7.0, 7.15))

        # (6.0 + 7.0 + 7.15) / 3 = 6.7166...
        assert score.fit_score == 6.7

    def test_zone_matches_fit_score(self, aggregator, today):
        """Test composite zone is derived from the composite."""
        score = aggregator.aggregate(today, *_pillars(4.0, 6.0, 5.0))

        assert score.fit_score == 5.0
        assert score.zone == Zone.YELLOW
        assert score.zone == Zone.from_score(score.fit_score)

    def test_all_green_true(self, aggregator, today):
        """Test all_green when every pillar is at least 7."""
        score = aggregator.aggregate(today, *_pillars(7.0, 9.0, 8.0))

        assert score.all_green is True
        assert score.zone == Zone.GREEN

    def test_all_green_false_with_high_composite(self, aggregator, today):
        """Test one non-green pillar defeats all_green even if the composite is green."""
        score = aggregator.aggregate(today, *_pillars(6.9, 10.0, 10.0))

        assert score.zone == Zone.GREEN
        assert score.all_green is False

    def test_all_pillars_present(self, aggregator, today):
        score = aggregator.aggregate(today, *_pillars())

        assert set(score.pillars) == set(Pillar.all_pillars())
        assert score.date == today

    def test_computed_at_from_clock(self, aggregator, clock, today):
        """Test computed_at is stamped by the injected clock."""
        score = aggregator.aggregate(today, *_pillars())

        assert score.computed_at == clock.now()

    def test_zero_meals_raises_input_unavailable(self, aggregator, today):
        """Test Nutrition without entries cannot be scored."""
        with pytest.raises(InputUnavailable):
            aggregator.aggregate(today, *_pillars(meals=0))

    @pytest.mark.parametrize("bad", [-0.1, 10.1, math.nan, math.inf])
    def test_out_of_range_raw_score_rejected(self, aggregator, today, bad):
        """Test raw scores outside [0, 10] raise InvalidPillarScore."""
        with pytest.raises(InvalidPillarScore):
            aggregator.aggregate(today, *_pillars(training=bad))

    def test_boundaries_accepted(self, aggregator, today):
        """Test 0 and 10 are valid raw scores."""
        score = aggregator.aggregate(today, *_pillars(0.0, 10.0, 10.0))

        assert score.fit_score == 6.7

    def test_mismatched_pillar_rejected(self, aggregator, today):
        nutrition, training, recovery = _pillars()

        with pytest.raises(ValueError):
            aggregator.aggregate(today, training, nutrition, recovery)

    def test_custom_policy_is_clamped(self, clock, today):
        """Test a policy drifting outside the scale is clamped to [0, 10]."""

        class Overshoot(WeightingPolicy):
            def combine(self, pillars):
                return 11.3

        score = ScoreAggregator(Overshoot(), clock).aggregate(today, *_pillars())

        assert score.fit_score == 10.0
