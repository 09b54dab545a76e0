"""
FitScore Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the FitScore engine.

This module defines the enums and dataclasses shared by the
aggregator, the formatter, the weak-link diagnostics and the
date-scoped cache.

============================================================
DESIGN PRINCIPLES
============================================================
- All outputs are immutable
- Enums for discrete values (pillar, zone, date state)
- A single zone function used everywhere a zone is shown
- Records round-trip through plain dicts for persistence

============================================================
PILLARS
============================================================
1. RECOVERY  - physiological recovery (sleep, HRV, recovery %)
2. TRAINING  - physical training sessions
3. NUTRITION - logged meals

Each pillar carries a raw score on a 0-10 scale.

============================================================
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# ENUMS
# ============================================================


class Pillar(str, Enum):
    """The three wellness pillars combined into a FitScore."""

    RECOVERY = "recovery"
    TRAINING = "training"
    NUTRITION = "nutrition"

    @classmethod
    def all_pillars(cls) -> List["Pillar"]:
        """Return all pillars in snapshot order."""
        return [cls.RECOVERY, cls.TRAINING, cls.NUTRITION]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def counts_entries(self) -> bool:
        """Whether the pillar has a contributing-entry count."""
        return self != Pillar.RECOVERY


class Zone(str, Enum):
    """
    Traffic-light classification of a score.

    - GREEN: score >= 7
    - YELLOW: score >= 5
    - RED: below 5
    """

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @classmethod
    def from_score(cls, score: float) -> "Zone":
        """
        Classify a 0-10 score.

        This is the only zone function; composite, pillar and
        weak-link zones all go through it.
        """
        if score >= 7:
            return cls.GREEN
        elif score >= 5:
            return cls.YELLOW
        else:
            return cls.RED


class WaterIntakeBand(str, Enum):
    """Self-reported hydration bucket for a day."""

    UNDER_1L = "<1L"
    ONE_TO_TWO = "1–2L"
    TWO_TO_THREE = "2–3L"
    THREE_PLUS = "3L+"

    @property
    def is_lowest(self) -> bool:
        return self == WaterIntakeBand.UNDER_1L


class DateState(str, Enum):
    """
    Mutability of a calendar date.

    - EDITABLE: today or yesterday, may be mutated and recomputed
    - READ_ONLY: any earlier date, frozen history
    """

    EDITABLE = "editable"
    READ_ONLY = "read_only"


class LookupKind(str, Enum):
    """Tag of a cached-or-stored lookup result."""

    FULL = "full"
    """A complete CompositeScore with breakdown."""

    STORED = "stored"
    """Reduced read-only projection (score only)."""

    EMPTY = "empty"
    """Nothing was logged that day."""


# ============================================================
# DAY CONTEXT INPUTS
# ============================================================


@dataclass(frozen=True)
class NutritionDayContext:
    """Structural facts about the day's meals."""

    meals_logged: int
    longest_gap_hours: Optional[float] = None
    late_meal_flag: bool = False
    only_meal_is_pure_junk: bool = False
    first_meal_time: Optional[str] = None
    last_meal_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meals_logged": self.meals_logged,
            "longest_gap_hours": self.longest_gap_hours,
            "late_meal_flag": self.late_meal_flag,
            "only_meal_is_pure_junk": self.only_meal_is_pure_junk,
            "first_meal_time": self.first_meal_time,
            "last_meal_time": self.last_meal_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NutritionDayContext":
        return cls(**data)


@dataclass(frozen=True)
class TimingSignals:
    """Lower-fidelity meal timing flags used when no day context exists."""

    long_gap_flag: bool = False
    late_meal_flag: bool = False
    long_gap_window: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "long_gap_flag": self.long_gap_flag,
            "late_meal_flag": self.late_meal_flag,
            "long_gap_window": self.long_gap_window,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimingSignals":
        return cls(**data)


@dataclass(frozen=True)
class WhoopSignals:
    """Physiological signals from the wearable."""

    sleep_hours: Optional[float] = None
    recovery_percent: Optional[float] = None
    hrv: Optional[float] = None
    hrv_baseline: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sleep_hours": self.sleep_hours,
            "recovery_percent": self.recovery_percent,
            "hrv": self.hrv,
            "hrv_baseline": self.hrv_baseline,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WhoopSignals":
        return cls(**data)


@dataclass(frozen=True)
class TrainingSession:
    """A logged training session."""

    type: str
    duration_minutes: int
    intensity: Optional[str] = None
    goal: Optional[str] = None
    comment: Optional[str] = None
    score: Optional[float] = None
    skipped: bool = False
    entry_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "duration_minutes": self.duration_minutes,
            "intensity": self.intensity,
            "goal": self.goal,
            "comment": self.comment,
            "score": self.score,
            "skipped": self.skipped,
            "entry_id": self.entry_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingSession":
        return cls(**data)


@dataclass(frozen=True)
class MealDetail:
    """
    A logged meal with its per-meal score.

    quality_flags maps a quality dimension key (see
    diagnostics.QUALITY_LABELS) to its effective status,
    "ok" or "warning".
    """

    meal_type: str
    score: Optional[float] = None
    score_display: Optional[str] = None
    analysis: Optional[str] = None
    quality_flags: Dict[str, str] = field(default_factory=dict)
    logged_at: Optional[str] = None
    entry_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meal_type": self.meal_type,
            "score": self.score,
            "score_display": self.score_display,
            "analysis": self.analysis,
            "quality_flags": dict(self.quality_flags),
            "logged_at": self.logged_at,
            "entry_id": self.entry_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MealDetail":
        return cls(**data)


# ============================================================
# SCORE RECORDS
# ============================================================


@dataclass(frozen=True)
class PillarScore:
    """
    Raw score of one pillar.

    entry_count is the number of meals (Nutrition) or sessions
    (Training) contributing. Recovery has no entry count and
    always carries 0.
    """

    pillar: Pillar
    raw_score: float
    entry_count: int = 0

    @property
    def zone(self) -> Zone:
        return Zone.from_score(self.raw_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pillar": self.pillar.value,
            "raw_score": self.raw_score,
            "entry_count": self.entry_count,
            "zone": self.zone.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PillarScore":
        return cls(
            pillar=Pillar(data["pillar"]),
            raw_score=float(data["raw_score"]),
            entry_count=int(data.get("entry_count", 0)),
        )


@dataclass(frozen=True)
class ScoreContext:
    """Supporting facts captured when a score was computed."""

    whoop: WhoopSignals = field(default_factory=WhoopSignals)
    nutrition_context: Optional[NutritionDayContext] = None
    timing_signals: Optional[TimingSignals] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "whoop": self.whoop.to_dict(),
            "nutrition_context": self.nutrition_context.to_dict() if self.nutrition_context else None,
            "timing_signals": self.timing_signals.to_dict() if self.timing_signals else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreContext":
        nutrition = data.get("nutrition_context")
        timing = data.get("timing_signals")
        return cls(
            whoop=WhoopSignals.from_dict(data.get("whoop") or {}),
            nutrition_context=NutritionDayContext.from_dict(nutrition) if nutrition else None,
            timing_signals=TimingSignals.from_dict(timing) if timing else None,
        )


@dataclass(frozen=True)
class CompositeScore:
    """
    Complete FitScore for one date.

    ============================================================
    GUARANTEES
    ============================================================
    - zone == Zone.from_score(fit_score)
    - all_green is True iff every pillar zone is GREEN
    - all three pillars always present
    - never partially mutated; a recompute replaces the record

    ============================================================
    """

    date: date
    fit_score: float
    zone: Zone
    pillars: Dict[Pillar, PillarScore]
    all_green: bool
    computed_at: datetime
    context: ScoreContext = field(default_factory=ScoreContext)

    def pillar(self, pillar: Pillar) -> PillarScore:
        return self.pillars[pillar]

    @property
    def nutrition(self) -> PillarScore:
        return self.pillars[Pillar.NUTRITION]

    @property
    def training(self) -> PillarScore:
        return self.pillars[Pillar.TRAINING]

    @property
    def recovery(self) -> PillarScore:
        return self.pillars[Pillar.RECOVERY]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "fit_score": self.fit_score,
            "zone": self.zone.value,
            "pillars": {
                p.value: self.pillars[p].to_dict() for p in Pillar.all_pillars()
            },
            "all_green": self.all_green,
            "computed_at": self.computed_at.isoformat(),
            "context": self.context.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompositeScore":
        pillars = {
            Pillar(key): PillarScore.from_dict(value)
            for key, value in data["pillars"].items()
        }
        return cls(
            date=date.fromisoformat(data["date"]),
            fit_score=float(data["fit_score"]),
            zone=Zone(data["zone"]),
            pillars=pillars,
            all_green=bool(data["all_green"]),
            computed_at=datetime.fromisoformat(data["computed_at"]),
            context=ScoreContext.from_dict(data.get("context") or {}),
        )


@dataclass(frozen=True)
class StoredProjection:
    """Reduced read-only score for a past date (no breakdown)."""

    date: date
    score: float

    @property
    def zone(self) -> Zone:
        return Zone.from_score(self.score)


@dataclass(frozen=True)
class ScoreLookup:
    """
    Tagged result of a cached-or-stored lookup.

    Exactly one of score / projection is set unless kind is EMPTY.
    source names the tier that answered ("memory", "durable",
    "projection") and is None for EMPTY.
    """

    date: date
    kind: LookupKind
    score: Optional[CompositeScore] = None
    projection: Optional[StoredProjection] = None
    source: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.kind == LookupKind.EMPTY

    @classmethod
    def empty(cls, score_date: date) -> "ScoreLookup":
        return cls(date=score_date, kind=LookupKind.EMPTY)


# ============================================================
# DIAGNOSTIC TYPES
# ============================================================


@dataclass(frozen=True)
class DayContext:
    """
    Read-only supporting facts used solely for diagnosis.

    Assembled from a CompositeScore's ScoreContext plus the
    current meal list, session list and hydration band.
    Never used for scoring.
    """

    whoop: WhoopSignals = field(default_factory=WhoopSignals)
    nutrition: Optional[NutritionDayContext] = None
    timing: Optional[TimingSignals] = None
    meals: List[MealDetail] = field(default_factory=list)
    training_sessions: List[TrainingSession] = field(default_factory=list)
    water_intake_band: Optional[WaterIntakeBand] = None


@dataclass(frozen=True)
class ReasonCandidate:
    """A causal explanation with a severity from 1 (mild) to 4 (severe)."""

    text: str
    severity: int


@dataclass(frozen=True)
class WeakLinkResult:
    """
    Diagnosis of the pillar dragging the day down.

    Derived, never persisted. display_score is the exact
    string shown by the breakdown widget and embedded in the
    narrative.
    """

    pillar: Pillar
    display_score: str
    primary_reason: str
    narrative: str
    severity: int
    zone: Zone
    secondary_reason: Optional[str] = None

    @property
    def reasons(self) -> List[str]:
        if self.secondary_reason:
            return [self.primary_reason, self.secondary_reason]
        return [self.primary_reason]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pillar": self.pillar.value,
            "display_score": self.display_score,
            "primary_reason": self.primary_reason,
            "secondary_reason": self.secondary_reason,
            "narrative": self.narrative,
            "severity": self.severity,
            "zone": self.zone.value,
        }
