"""
Tests for weak-link diagnostics.

============================================================
PURPOSE
============================================================
Verify pillar selection, reason ranking and narrative
composition.

TEST PRINCIPLES:
- Tie-break order is deterministic
- The narrative numeral equals the breakdown display value
- Diagnosis is pure and repeatable

============================================================
"""

import pytest

from fitscore.diagnostics import (
    CLOSING_REQUEST,
    GENERIC_QUALITY_REASON,
    LOW_WATER_NOTE,
    WeakLinkDiagnostics,
    build_day_context,
    get_weak_link,
    select_weak_pillar,
    worst_quality_factor,
)
from fitscore.formatting import display_pillar
from fitscore.types import (
    MealDetail,
    NutritionDayContext,
    Pillar,
    TimingSignals,
    TrainingSession,
    WaterIntakeBand,
    WhoopSignals,
    Zone,
)


# ============================================================
# PILLAR SELECTION
# ============================================================

class TestSelectWeakPillar:
    """Tests for tie-break order."""

    def test_lowest_wins(self):
        assert select_weak_pillar(8.0, 7.0, 3.0) == Pillar.RECOVERY
        assert select_weak_pillar(8.0, 3.0, 7.0) == Pillar.TRAINING
        assert select_weak_pillar(3.0, 8.0, 7.0) == Pillar.NUTRITION

    def test_three_way_tie_is_nutrition(self):
        """Test Nutrition wins a three-way tie."""
        assert select_weak_pillar(5.0, 5.0, 5.0) == Pillar.NUTRITION

    def test_nutrition_wins_tie_with_training(self):
        assert select_weak_pillar(5.0, 5.0, 9.0) == Pillar.NUTRITION

    def test_nutrition_wins_tie_with_recovery(self):
        assert select_weak_pillar(5.0, 9.0, 5.0) == Pillar.NUTRITION

    def test_training_wins_tie_with_recovery(self):
        """Test Training beats Recovery on a tie."""
        assert select_weak_pillar(9.0, 5.0, 5.0) == Pillar.TRAINING

    def test_selection_uses_raw_scores(self, make_score):
        """Test 6.5 (displayed "7") still loses to 6.6 (displayed "6.6")."""
        score = make_score(nutrition=6.5, training=6.6, recovery=9.0, meals=1, sessions=3)

        result = get_weak_link(score)

        assert result.pillar == Pillar.NUTRITION
        assert result.display_score == "7"


# ============================================================
# QUALITY FACTORS
# ============================================================

class TestWorstQualityFactor:
    """Tests for meal-quality fallback labels."""

    def test_most_flagged_dimension(self):
        meals = [
            MealDetail("Lunch", quality_flags={"processingLoad": "warning", "proteinAdequacy": "warning"}),
            MealDetail("Dinner", quality_flags={"processingLoad": "warning"}),
        ]

        assert worst_quality_factor(meals) == "High processing load in meals"

    def test_tie_goes_to_first_dimension(self):
        """Test frequency ties resolve in fixed dimension order."""
        meals = [
            MealDetail("Lunch", quality_flags={"portionBalance": "warning"}),
            MealDetail("Dinner", quality_flags={"fiberPlantVolume": "warning"}),
        ]

        assert worst_quality_factor(meals) == "Low fiber and plant volume"

    def test_ok_flags_are_ignored(self):
        meals = [MealDetail("Lunch", quality_flags={"processingLoad": "ok"})]

        assert worst_quality_factor(meals) is None


# ============================================================
# NUTRITION REASONS
# ============================================================

class TestNutritionReasons:
    """Tests for nutrition reason candidates and ranking."""

    def test_single_junk_meal_late(self, make_score):
        """Test the most severe candidate with a gated secondary."""
        ctx = NutritionDayContext(
            meals_logged=1,
            longest_gap_hours=9.0,
            late_meal_flag=True,
            only_meal_is_pure_junk=True,
            last_meal_time="23:10",
        )
        score = make_score(nutrition=2.0, training=7.0, recovery=8.0, meals=1, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.primary_reason == "Only meal was junk food eaten late at night"
        assert result.severity == 4
        assert result.secondary_reason == "9h gap between meals"

    def test_single_meal_with_gap(self, make_score):
        """Test one meal and a 7.5h gap rank severity 3 then 2."""
        ctx = NutritionDayContext(meals_logged=1, longest_gap_hours=7.5)
        score = make_score(nutrition=6.5, training=7.0, recovery=8.0, meals=1, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.pillar == Pillar.NUTRITION
        assert result.display_score == "7"
        assert result.primary_reason == "Only 1 meal logged today"
        assert result.secondary_reason == "8h gap between meals"
        assert result.narrative.startswith(
            "Today's weak link is Nutrition (7/10). Only 1 meal logged today. 8h gap between meals."
        )

    def test_secondary_gated_below_two(self, make_score):
        """Test a severity-1 runner-up is not disclosed."""
        ctx = NutritionDayContext(meals_logged=1, longest_gap_hours=5.5)
        score = make_score(nutrition=4.0, meals=1, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.primary_reason == "Only 1 meal logged today"
        assert result.secondary_reason is None

    def test_secondary_gated_when_primary_mild(self, make_score):
        """Test no secondary when the primary is below severity 3."""
        ctx = NutritionDayContext(
            meals_logged=3,
            longest_gap_hours=8.0,
            late_meal_flag=True,
            last_meal_time="22:30",
        )
        score = make_score(nutrition=4.0, meals=3, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.primary_reason == "8h gap between meals"
        assert result.severity == 2
        assert result.secondary_reason is None

    def test_equal_severity_keeps_generation_order(self, make_score):
        """Test stable ordering among equal severities."""
        ctx = NutritionDayContext(
            meals_logged=3,
            longest_gap_hours=5.0,
            late_meal_flag=True,
            last_meal_time="22:30",
        )
        score = make_score(nutrition=4.0, meals=3, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.primary_reason == "5h gap between meals"
        assert result.severity == 1

    def test_timing_fallback_without_day_context(self, make_score):
        """Test lower-fidelity timing flags are used when day context is absent."""
        timing = TimingSignals(long_gap_flag=True, late_meal_flag=True, long_gap_window="10:00–18:00")
        score = make_score(nutrition=4.0, meals=1, timing=timing)

        result = get_weak_link(score)

        assert result.primary_reason == "Only 1 meal logged today"
        assert result.secondary_reason == "Long meal gap: 10:00–18:00"

    def test_quality_fallback(self, make_score):
        """Test meal-quality label when nothing structural is wrong."""
        ctx = NutritionDayContext(meals_logged=3, longest_gap_hours=3.0)
        score = make_score(nutrition=4.0, meals=3, nutrition_context=ctx)
        meals = [
            MealDetail("Lunch", score=4.0, quality_flags={"proteinAdequacy": "warning"}),
        ]

        result = get_weak_link(score, meals=meals)

        assert result.primary_reason == "Protein intake was low"
        assert result.severity == 1

    def test_generic_fallback(self, make_score):
        ctx = NutritionDayContext(meals_logged=3, longest_gap_hours=3.0)
        score = make_score(nutrition=4.0, meals=3, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.primary_reason == GENERIC_QUALITY_REASON


# ============================================================
# TRAINING / RECOVERY REASONS
# ============================================================

class TestTrainingAndRecoveryReasons:
    """Tests for single-reason chains."""

    def test_no_session_logged(self, make_score):
        """Test zero sessions: one-decimal display and the no-session reason."""
        score = make_score(nutrition=8.0, training=3.0, recovery=8.0, sessions=0)

        result = get_weak_link(score)

        assert result.pillar == Pillar.TRAINING
        assert result.display_score == "3.0"
        assert result.primary_reason == "No training session logged today"
        assert result.zone == Zone.RED

    def test_low_training_load(self, make_score):
        score = make_score(nutrition=8.0, training=4.0, recovery=8.0, sessions=1)

        result = get_weak_link(score)

        assert result.primary_reason == "Session load could better match your readiness"

    def test_training_quality(self, make_score):
        score = make_score(nutrition=8.0, training=6.0, recovery=8.0, sessions=2)

        assert get_weak_link(score).primary_reason == "Session quality has room to improve"

    def test_short_sleep(self, make_score):
        """Test the recovery chain stops at the first match."""
        whoop = WhoopSignals(sleep_hours=5.2, recovery_percent=30)
        score = make_score(nutrition=8.0, training=8.0, recovery=3.5, whoop=whoop)

        result = get_weak_link(score)

        assert result.pillar == Pillar.RECOVERY
        assert result.primary_reason == "Short sleep — 5.2h logged"
        assert result.secondary_reason is None

    def test_recovery_dip(self, make_score):
        whoop = WhoopSignals(sleep_hours=7.0, recovery_percent=34)
        score = make_score(nutrition=8.0, training=8.0, recovery=3.5, whoop=whoop)

        assert get_weak_link(score).primary_reason == "Recovery dipped to 34%"

    def test_hrv_below_baseline(self, make_score):
        whoop = WhoopSignals(sleep_hours=7.0, recovery_percent=55, hrv=40, hrv_baseline=50)
        score = make_score(nutrition=8.0, training=8.0, recovery=5.0, whoop=whoop)

        assert get_weak_link(score).primary_reason == "HRV trending below baseline"

    def test_recovery_fallback(self, make_score):
        score = make_score(nutrition=8.0, training=8.0, recovery=5.0)

        assert get_weak_link(score).primary_reason == "Recovery consistency needs attention"


# ============================================================
# NARRATIVE
# ============================================================

class TestNarrative:
    """Tests for narrative composition."""

    @pytest.mark.parametrize("raw,meals", [(6.5, 1), (6.45, 2), (2.5, 1), (0.0, 4)])
    def test_narrative_numeral_equals_display(self, make_score, raw, meals):
        """Test the headline numeral equals the breakdown widget value."""
        score = make_score(nutrition=raw, training=9.0, recovery=9.0, meals=meals)

        result = get_weak_link(score)
        shown = display_pillar(score.nutrition)

        assert result.display_score == shown
        assert f"Nutrition ({shown}/10)" in result.narrative
        assert f"Nutrition: {shown}/10" in result.narrative

    def test_snapshot_uses_shared_display(self, make_score):
        score = make_score(nutrition=6.5, training=8.0, recovery=7.0, meals=1, fit_score=7.2)

        result = get_weak_link(score)

        assert (
            "Day snapshot — FitScore: 7.2/10, Recovery: 7.0/10, Training: 8/10, Nutrition: 7/10."
            in result.narrative
        )

    def test_low_water_note(self, make_score):
        score = make_score(nutrition=4.0)

        result = get_weak_link(score, water_band="<1L")

        assert LOW_WATER_NOTE in result.narrative

    def test_no_water_note_for_other_bands(self, make_score):
        score = make_score(nutrition=4.0)

        result = get_weak_link(score, water_band=WaterIntakeBand.TWO_TO_THREE)

        assert "Hydration" not in result.narrative

    def test_ends_with_closing_request(self, make_score):
        result = get_weak_link(make_score(nutrition=4.0))

        assert result.narrative.endswith(CLOSING_REQUEST)

    def test_training_details(self, make_score):
        """Test training sessions are described when Training is weakest."""
        score = make_score(nutrition=8.0, training=4.0, recovery=8.0, sessions=1)
        sessions = [
            TrainingSession("Run", 30, intensity="high", goal="endurance", score=4.0),
            TrainingSession("Yoga", 45, skipped=True),
        ]

        result = get_weak_link(score, sessions=sessions)

        assert "Run (30min, high intensity) — goal: endurance — score 4/10" in result.narrative
        assert "Sessions logged: 1, Skipped: 1, Total minutes: 30." in result.narrative

    def test_weakest_meal_notes_truncated(self, make_score):
        """Test the weakest meal's analysis excerpt is capped."""
        score = make_score(nutrition=4.0, meals=2)
        meals = [
            MealDetail("Breakfast", score=7.0, analysis="fine"),
            MealDetail("Dinner", score=3.0, analysis="x" * 300),
        ]

        result = get_weak_link(score, meals=meals)

        assert "Meals today: Breakfast (7/10), Dinner (3/10)." in result.narrative
        assert "Weakest meal (Dinner) AI notes: " + "x" * 200 + "." in result.narrative
        assert "x" * 201 not in result.narrative

    def test_sleep_and_recovery_lines(self, make_score):
        whoop = WhoopSignals(sleep_hours=7.25, recovery_percent=62.5)
        score = make_score(nutrition=4.0, whoop=whoop)

        result = get_weak_link(score)

        assert "Sleep: 7.3h." in result.narrative
        assert "WHOOP recovery: 63%." in result.narrative


# ============================================================
# PURITY
# ============================================================

class TestPurity:
    """Diagnosis is deterministic and side-effect free."""

    def test_repeat_calls_identical(self, make_score):
        ctx_in = NutritionDayContext(meals_logged=1, longest_gap_hours=7.5)
        score = make_score(nutrition=6.5, meals=1, nutrition_context=ctx_in)
        engine = WeakLinkDiagnostics()
        ctx = build_day_context(score, [MealDetail("Lunch", score=6.5)])

        first = engine.diagnose(score, ctx)
        second = engine.diagnose(score, ctx)

        assert first == second
        assert score.nutrition.raw_score == 6.5

    def test_string_water_band_coerced(self, make_score):
        ctx = build_day_context(make_score(), water_band="3L+")

        assert ctx.water_intake_band == WaterIntakeBand.THREE_PLUS


# ============================================================
# REFERENCE DAYS
# ============================================================

class TestReferenceDays:
    """Whole-day examples."""

    def test_single_late_junk_meal(self, make_score):
        ctx = NutritionDayContext(meals_logged=1, late_meal_flag=True, only_meal_is_pure_junk=True)
        score = make_score(nutrition=2.0, training=7.0, recovery=8.5, meals=1, nutrition_context=ctx)

        result = get_weak_link(score)

        assert result.pillar == Pillar.NUTRITION
        assert result.primary_reason == "Only meal was junk food eaten late at night"
        assert result.secondary_reason is None

    def test_tie_resolves_to_nutrition(self, make_score):
        score = make_score(nutrition=6.0, training=6.0, recovery=7.0, meals=3, sessions=2)

        result = get_weak_link(score)

        assert result.pillar == Pillar.NUTRITION
        assert result.display_score == "6.0"

    def test_rest_day_weak_link_is_training(self, make_score):
        score = make_score(nutrition=8.0, training=0.0, recovery=9.0, sessions=0)

        result = get_weak_link(score)

        assert result.pillar == Pillar.TRAINING
        assert result.primary_reason == "No training session logged today"
