"""
FitScore Engine - Weak-Link Diagnostics.

============================================================
PURPOSE
============================================================
Names the single pillar dragging the day's FitScore down and
explains why.

1. Select the weakest pillar (deterministic tie-break)
2. Derive its display value (shared formatter)
3. Generate severity-ranked reason candidates
4. Compose the coaching narrative

============================================================
DESIGN PRINCIPLES
============================================================
- Pure functions: (CompositeScore, DayContext) -> WeakLinkResult
- No framework, network or cache access
- Never cached; re-evaluated whenever its inputs change
- Every number shown comes from formatting.py

============================================================
TIE-BREAK
============================================================
Nutrition wins all ties. Training wins ties only against
Recovery. Comparison uses raw (undisplayed) scores.

============================================================
SEVERITY
============================================================
4  only meal was junk, eaten late
3  single meal (junk or not); fewer than two meals
2  long meal gap (>= 7h)
1  moderate gap, late meal, meal quality

The secondary reason is disclosed only when the primary is at
least severity 3 and the runner-up at least severity 2.

============================================================
"""

from typing import List, Optional, Sequence, Tuple, Union

from .config import DiagnosticsConfig
from .formatting import (
    display_number,
    display_pillar,
    format_integer,
    format_one_decimal,
)
from .types import (
    CompositeScore,
    DayContext,
    MealDetail,
    Pillar,
    ReasonCandidate,
    TrainingSession,
    WaterIntakeBand,
    WeakLinkResult,
    Zone,
)


# ============================================================
# MEAL QUALITY LABELS
# ============================================================

# Fixed order; the first dimension wins a frequency tie.
QUALITY_LABELS: List[Tuple[str, str]] = [
    ("fiberPlantVolume", "Low fiber and plant volume"),
    ("processingLoad", "High processing load in meals"),
    ("proteinAdequacy", "Protein intake was low"),
    ("nutrientDiversity", "Low nutrient diversity"),
    ("portionBalance", "Portion balance was off"),
]

QUALITY_WARNING = "warning"

GENERIC_QUALITY_REASON = "Fuel quality can be tighter"

CLOSING_REQUEST = (
    "Give me 2-3 practical fixes for tomorrow that fit my goal and current context."
)

LOW_WATER_NOTE = "Hydration: Less than 1L of water today — flagged as very low."


# ============================================================
# PILLAR SELECTION
# ============================================================


def select_weak_pillar(nutrition: float, training: float, recovery: float) -> Pillar:
    """
    Pick the lowest raw score.

    Nutrition if it is <= both others; else Training if it is
    <= Recovery; else Recovery.
    """
    if nutrition <= min(training, recovery):
        return Pillar.NUTRITION
    elif training <= recovery:
        return Pillar.TRAINING
    else:
        return Pillar.RECOVERY


def worst_quality_factor(meals: Sequence[MealDetail]) -> Optional[str]:
    """Label of the quality dimension flagged on the most meals, if any."""
    counts = {key: 0 for key, _ in QUALITY_LABELS}
    for meal in meals:
        for key in counts:
            if meal.quality_flags.get(key) == QUALITY_WARNING:
                counts[key] += 1

    best_key, best_count = None, 0
    for key, _ in QUALITY_LABELS:
        if counts[key] > best_count:
            best_key, best_count = key, counts[key]

    if best_key is None:
        return None
    return dict(QUALITY_LABELS)[best_key]


def build_day_context(
    score: CompositeScore,
    meals: Optional[Sequence[MealDetail]] = None,
    sessions: Optional[Sequence[TrainingSession]] = None,
    water_band: Optional[Union[WaterIntakeBand, str]] = None,
) -> DayContext:
    """Assemble the diagnostic view of a day."""
    if water_band is not None and not isinstance(water_band, WaterIntakeBand):
        water_band = WaterIntakeBand(water_band)
    return DayContext(
        whoop=score.context.whoop,
        nutrition=score.context.nutrition_context,
        timing=score.context.timing_signals,
        meals=list(meals or []),
        training_sessions=list(sessions or []),
        water_intake_band=water_band,
    )


# ============================================================
# DIAGNOSTIC ENGINE
# ============================================================


class WeakLinkDiagnostics:
    """
    Weak-link diagnostic engine.

    Holds only configuration; every call is independent and
    safe to repeat.
    """

    def __init__(self, config: Optional[DiagnosticsConfig] = None):
        self.config = config or DiagnosticsConfig()

    def diagnose(self, score: CompositeScore, ctx: DayContext) -> WeakLinkResult:
        """
        Diagnose the weak link of a scored day.

        Args:
            score: Computed CompositeScore
            ctx: Supporting facts for the same day

        Returns:
            WeakLinkResult
        """
        # --------------------------------------------------
        # Step 1: Select pillar on raw scores
        # --------------------------------------------------
        pillar = select_weak_pillar(
            score.nutrition.raw_score,
            score.training.raw_score,
            score.recovery.raw_score,
        )

        # --------------------------------------------------
        # Step 2: Display value
        # --------------------------------------------------
        display = display_pillar(score.pillar(pillar))

        # --------------------------------------------------
        # Step 3: Reasons
        # --------------------------------------------------
        if pillar == Pillar.NUTRITION:
            primary, secondary, severity = self._rank(self.nutrition_candidates(score, ctx))
        elif pillar == Pillar.TRAINING:
            candidate = self.training_reason(score)
            primary, secondary, severity = candidate.text, None, candidate.severity
        else:
            candidate = self.recovery_reason(ctx)
            primary, secondary, severity = candidate.text, None, candidate.severity

        # --------------------------------------------------
        # Step 4: Narrative
        # --------------------------------------------------
        narrative = self.compose_narrative(score, ctx, pillar, display, primary, secondary)

        return WeakLinkResult(
            pillar=pillar,
            display_score=display,
            primary_reason=primary,
            secondary_reason=secondary,
            narrative=narrative,
            severity=severity,
            zone=Zone.from_score(display_number(display)),
        )

    # --------------------------------------------------------
    # NUTRITION
    # --------------------------------------------------------

    def nutrition_candidates(
        self,
        score: CompositeScore,
        ctx: DayContext,
    ) -> List[ReasonCandidate]:
        """Unsorted nutrition reason candidates; never empty."""
        candidates: List[ReasonCandidate] = []
        day = ctx.nutrition

        if day is not None:
            if day.meals_logged == 1 and day.only_meal_is_pure_junk and day.late_meal_flag:
                candidates.append(ReasonCandidate("Only meal was junk food eaten late at night", 4))
            elif day.meals_logged == 1 and day.only_meal_is_pure_junk:
                candidates.append(ReasonCandidate("Only meal logged was low-quality junk food", 3))
            elif day.meals_logged == 1:
                candidates.append(ReasonCandidate("Only 1 meal logged today", 3))

            gap = day.longest_gap_hours
            if gap is not None:
                text = f"{format_integer(gap)}h gap between meals"
                if gap >= self.config.long_gap_severe_hours:
                    candidates.append(ReasonCandidate(text, 2))
                elif gap >= self.config.long_gap_mild_hours:
                    candidates.append(ReasonCandidate(text, 1))

            if day.late_meal_flag and day.last_meal_time and day.meals_logged > 1:
                candidates.append(
                    ReasonCandidate(f"Late meal at {day.last_meal_time} may affect sleep", 1)
                )
        else:
            timing = ctx.timing
            if timing is not None and timing.long_gap_flag:
                text = (
                    f"Long meal gap: {timing.long_gap_window}"
                    if timing.long_gap_window
                    else "Long gap between meals"
                )
                candidates.append(ReasonCandidate(text, 2))
            if timing is not None and timing.late_meal_flag:
                candidates.append(ReasonCandidate("Late meal may affect overnight recovery", 1))
            meal_count = score.nutrition.entry_count
            if meal_count < 2:
                candidates.append(ReasonCandidate(f"Only {meal_count} meal logged today", 3))

        if not candidates:
            candidates.append(
                ReasonCandidate(worst_quality_factor(ctx.meals) or GENERIC_QUALITY_REASON, 1)
            )

        return candidates

    def _rank(
        self,
        candidates: List[ReasonCandidate],
    ) -> Tuple[str, Optional[str], int]:
        ranked = sorted(candidates, key=lambda c: -c.severity)
        top = ranked[0]
        secondary = None
        if len(ranked) > 1:
            second = ranked[1]
            if (
                top.severity >= self.config.secondary_min_primary_severity
                and second.severity >= self.config.secondary_min_second_severity
            ):
                secondary = second.text
        return top.text, secondary, top.severity

    # --------------------------------------------------------
    # TRAINING / RECOVERY
    # --------------------------------------------------------

    def training_reason(self, score: CompositeScore) -> ReasonCandidate:
        if score.training.entry_count == 0:
            return ReasonCandidate("No training session logged today", 3)
        elif score.training.raw_score < self.config.low_training_score:
            return ReasonCandidate("Session load could better match your readiness", 2)
        return ReasonCandidate("Session quality has room to improve", 1)

    def recovery_reason(self, ctx: DayContext) -> ReasonCandidate:
        whoop = ctx.whoop
        if whoop.sleep_hours is not None and whoop.sleep_hours < self.config.short_sleep_hours:
            return ReasonCandidate(f"Short sleep — {format_one_decimal(whoop.sleep_hours)}h logged", 3)
        elif (
            whoop.recovery_percent is not None
            and whoop.recovery_percent < self.config.low_recovery_percent
        ):
            return ReasonCandidate(f"Recovery dipped to {format_integer(whoop.recovery_percent)}%", 2)
        elif whoop.hrv and whoop.hrv_baseline and whoop.hrv < whoop.hrv_baseline - self.config.hrv_margin_ms:
            return ReasonCandidate("HRV trending below baseline", 2)
        return ReasonCandidate("Recovery consistency needs attention", 1)

    # --------------------------------------------------------
    # NARRATIVE
    # --------------------------------------------------------

    def compose_narrative(
        self,
        score: CompositeScore,
        ctx: DayContext,
        pillar: Pillar,
        display: str,
        primary: str,
        secondary: Optional[str] = None,
    ) -> str:
        """
        Build the coaching narrative handed to downstream coaching.

        Pillar values are taken from the shared formatter so the
        numerals match the breakdown widget exactly.
        """
        headline = f"Today's weak link is {pillar.display_name} ({display}/10). {primary}."
        if secondary:
            headline += f" {secondary}."
        parts: List[str] = [headline, self._snapshot(score)]

        whoop = ctx.whoop
        if whoop.sleep_hours:
            parts.append(f"Sleep: {format_one_decimal(whoop.sleep_hours)}h.")
        if whoop.recovery_percent:
            parts.append(f"WHOOP recovery: {format_integer(whoop.recovery_percent)}%.")

        if pillar == Pillar.TRAINING:
            parts.extend(self._training_detail(ctx))
        elif pillar == Pillar.NUTRITION:
            parts.extend(self._nutrition_detail(ctx))

        if ctx.water_intake_band is not None and ctx.water_intake_band.is_lowest:
            parts.append(LOW_WATER_NOTE)

        parts.append(CLOSING_REQUEST)
        return " ".join(parts)

    @staticmethod
    def _snapshot(score: CompositeScore) -> str:
        return (
            f"Day snapshot — FitScore: {format_one_decimal(score.fit_score)}/10, "
            f"Recovery: {display_pillar(score.recovery)}/10, "
            f"Training: {display_pillar(score.training)}/10, "
            f"Nutrition: {display_pillar(score.nutrition)}/10."
        )

    @staticmethod
    def _training_detail(ctx: DayContext) -> List[str]:
        parts: List[str] = []
        active = [s for s in ctx.training_sessions if not s.skipped]

        details = []
        for session in active:
            head = f"{session.type} ({session.duration_minutes}min"
            if session.intensity:
                head += f", {session.intensity} intensity"
            pieces = [head + ")"]
            if session.goal:
                pieces.append(f"goal: {session.goal}")
            if session.comment:
                pieces.append(f'notes: "{session.comment}"')
            if session.score is not None:
                pieces.append(f"score {format_integer(session.score)}/10")
            details.append(" — ".join(pieces))
        if details:
            parts.append(f"Training logged: {'; '.join(details)}.")

        if ctx.training_sessions:
            skipped = len(ctx.training_sessions) - len(active)
            minutes = sum(s.duration_minutes for s in active)
            parts.append(
                f"Training day context: Sessions logged: {len(active)}, "
                f"Skipped: {skipped}, Total minutes: {minutes}."
            )
        return parts

    def _nutrition_detail(self, ctx: DayContext) -> List[str]:
        parts: List[str] = []

        if ctx.meals:
            listed = []
            for meal in ctx.meals:
                if meal.score is not None:
                    shown = meal.score_display or format_integer(meal.score)
                    listed.append(f"{meal.meal_type} ({shown}/10)")
                else:
                    listed.append(meal.meal_type)
            parts.append(f"Meals today: {', '.join(listed)}.")

            scored = [m for m in ctx.meals if m.score is not None]
            worst = min(scored, key=lambda m: m.score) if scored else None
            if worst is not None and worst.analysis:
                limit = self.config.analysis_excerpt_chars
                excerpt = worst.analysis[:limit].replace("\n", " ")
                parts.append(f"Weakest meal ({worst.meal_type}) AI notes: {excerpt}.")

        day = ctx.nutrition
        if day is not None:
            fields = [f"Meals logged: {day.meals_logged}"]
            if day.first_meal_time:
                fields.append(f"First: {day.first_meal_time}")
            if day.last_meal_time:
                fields.append(f"Last: {day.last_meal_time}")
            if day.longest_gap_hours is not None:
                fields.append(f"Longest gap: {format_one_decimal(day.longest_gap_hours)}h")
            fields.append(f"Late meal: {'yes' if day.late_meal_flag else 'no'}")
            fields.append(f"Only meal junk: {'yes' if day.only_meal_is_pure_junk else 'no'}")
            parts.append(f"Nutrition day context: {', '.join(fields)}.")
        return parts


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def diagnose(
    score: CompositeScore,
    ctx: DayContext,
    config: Optional[DiagnosticsConfig] = None,
) -> WeakLinkResult:
    """Diagnose a day in one call."""
    return WeakLinkDiagnostics(config).diagnose(score, ctx)


def get_weak_link(
    score: CompositeScore,
    meals: Optional[Sequence[MealDetail]] = None,
    sessions: Optional[Sequence[TrainingSession]] = None,
    water_band: Optional[Union[WaterIntakeBand, str]] = None,
    config: Optional[DiagnosticsConfig] = None,
) -> WeakLinkResult:
    """
    Pure, synchronous weak-link diagnosis.

    Args:
        score: Computed CompositeScore
        meals: Current meal list for the date
        sessions: Current training sessions for the date
        water_band: Hydration band, if reported

    Returns:
        WeakLinkResult
    """
    return diagnose(score, build_day_context(score, meals, sessions, water_band), config)
