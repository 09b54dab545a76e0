"""
FitScore Engine - Score Aggregator.

============================================================
PURPOSE
============================================================
Combines three already-computed pillar raw scores into a
CompositeScore: the FitScore, its zone, per-pillar zones and
the all-green flag.

============================================================
DESIGN PRINCIPLES
============================================================
- Pure: same input = same output (computed_at aside)
- Weighting is an injectable policy, not a constant
- Refuses to run without nutrition entries
- Training with zero sessions is valid input

============================================================
COMBINATION
============================================================
1. Validate raw scores are on the 0-10 scale
2. Refuse if Nutrition entry_count == 0 (InputUnavailable)
3. fit_score = policy.combine(pillars), clamped to [0, 10]
   and rounded half-up to one decimal
4. zone = Zone.from_score(fit_score)
5. all_green = every pillar zone is GREEN

============================================================
"""

import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Optional

from .clock import ClockProtocol, SystemClock
from .config import WeightingConfig
from .errors import InputUnavailable, InvalidPillarScore
from .formatting import round_half_up
from .types import (
    CompositeScore,
    Pillar,
    PillarScore,
    ScoreContext,
    Zone,
)


# ============================================================
# WEIGHTING POLICIES
# ============================================================


class WeightingPolicy(ABC):
    """
    Strategy combining pillar raw scores into one number.

    Implementations must return a value on the 0-10 scale for
    inputs on the 0-10 scale.
    """

    @abstractmethod
    def combine(self, pillars: Dict[Pillar, PillarScore]) -> float:
        pass


class FixedWeightPolicy(WeightingPolicy):
    """Weighted mean with fixed per-pillar weights, normalized by their sum."""

    def __init__(self, config: Optional[WeightingConfig] = None):
        config = config or WeightingConfig()
        self._weights = {
            Pillar.RECOVERY: config.recovery,
            Pillar.TRAINING: config.training,
            Pillar.NUTRITION: config.nutrition,
        }
        total = sum(self._weights.values())
        if total <= 0 or any(w < 0 for w in self._weights.values()):
            raise ValueError(f"Invalid pillar weights: {config.to_dict()}")
        self._total = total

    @property
    def weights(self) -> Dict[Pillar, float]:
        return dict(self._weights)

    def combine(self, pillars: Dict[Pillar, PillarScore]) -> float:
        weighted = sum(
            pillars[p].raw_score * w for p, w in self._weights.items()
        )
        return weighted / self._total


# ============================================================
# AGGREGATOR
# ============================================================


class ScoreAggregator:
    """
    Builds CompositeScore records from pillar scores.

    The aggregator is stateless; the clock only stamps
    computed_at.
    """

    def __init__(
        self,
        policy: Optional[WeightingPolicy] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self.policy = policy or FixedWeightPolicy()
        self._clock = clock or SystemClock()

    def aggregate(
        self,
        score_date: date,
        nutrition: PillarScore,
        training: PillarScore,
        recovery: PillarScore,
        context: Optional[ScoreContext] = None,
    ) -> CompositeScore:
        """
        Combine three pillar scores into a CompositeScore.

        Raises:
            InvalidPillarScore: If a raw score is outside [0, 10]
            InputUnavailable: If Nutrition has no entries
        """
        pillars = {
            Pillar.NUTRITION: nutrition,
            Pillar.TRAINING: training,
            Pillar.RECOVERY: recovery,
        }

        for pillar, score in pillars.items():
            if score.pillar != pillar:
                raise ValueError(f"Expected {pillar.value} score, got {score.pillar.value}")
            self._validate_raw(score)

        if nutrition.entry_count < 1:
            raise InputUnavailable(score_date)

        fit_score = self._round(self.policy.combine(pillars))

        return CompositeScore(
            date=score_date,
            fit_score=fit_score,
            zone=Zone.from_score(fit_score),
            pillars=pillars,
            all_green=all(s.zone == Zone.GREEN for s in pillars.values()),
            computed_at=self._clock.now(),
            context=context or ScoreContext(),
        )

    @staticmethod
    def _validate_raw(score: PillarScore) -> None:
        value = score.raw_score
        if value is None or not math.isfinite(value) or not 0 <= value <= 10:
            raise InvalidPillarScore(score.pillar.value, value)

    @staticmethod
    def _round(value: float) -> float:
        clamped = max(0.0, min(10.0, value))
        return float(round_half_up(clamped, 1))
