"""
Shared fixtures for FitScore engine tests.
"""

from datetime import date, datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from fitscore.clock import FrozenClock
from fitscore.providers import (
    NutritionScoreResult,
    RecoveryScoreResult,
    TrainingScoreResult,
)
from fitscore.types import (
    CompositeScore,
    NutritionDayContext,
    Pillar,
    PillarScore,
    ScoreContext,
    TimingSignals,
    WhoopSignals,
    Zone,
)


TODAY = date(2025, 3, 14)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    """Clock frozen at midday on TODAY."""
    return FrozenClock.on(TODAY)


@pytest.fixture
def make_score():
    """Factory for CompositeScore records with explicit pillars."""

    def _make(
        nutrition: float = 7.0,
        training: float = 7.0,
        recovery: float = 7.0,
        meals: int = 2,
        sessions: int = 1,
        fit_score: Optional[float] = None,
        score_date: date = TODAY,
        whoop: Optional[WhoopSignals] = None,
        nutrition_context: Optional[NutritionDayContext] = None,
        timing: Optional[TimingSignals] = None,
    ) -> CompositeScore:
        pillars = {
            Pillar.NUTRITION: PillarScore(Pillar.NUTRITION, nutrition, meals),
            Pillar.TRAINING: PillarScore(Pillar.TRAINING, training, sessions),
            Pillar.RECOVERY: PillarScore(Pillar.RECOVERY, recovery, 0),
        }
        if fit_score is None:
            fit_score = round((nutrition + training + recovery) / 3, 1)
        return CompositeScore(
            date=score_date,
            fit_score=fit_score,
            zone=Zone.from_score(fit_score),
            pillars=pillars,
            all_green=all(p.zone == Zone.GREEN for p in pillars.values()),
            computed_at=datetime(2025, 3, 14, 12, tzinfo=timezone.utc),
            context=ScoreContext(
                whoop=whoop or WhoopSignals(),
                nutrition_context=nutrition_context,
                timing_signals=timing,
            ),
        )

    return _make


@pytest.fixture
def providers():
    """
    AsyncMock pillar providers returning a mid-range day.

    Returns (nutrition, training, recovery).
    """
    nutrition = AsyncMock()
    nutrition.get = AsyncMock(return_value=NutritionScoreResult(
        meal_count=2,
        average_score=6.0,
        day_context=NutritionDayContext(meals_logged=2, longest_gap_hours=4.0),
    ))
    training = AsyncMock()
    training.get = AsyncMock(return_value=TrainingScoreResult(
        session_count=1,
        average_score=8.0,
    ))
    recovery = AsyncMock()
    recovery.get = AsyncMock(return_value=RecoveryScoreResult(
        score=7.0,
        sleep_hours=7.5,
        recovery_percent=66,
    ))
    return nutrition, training, recovery
