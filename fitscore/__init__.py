"""
FitScore Engine - Package.

============================================================
PURPOSE
============================================================
Combines three daily wellness pillars (Recovery, Training,
Nutrition) into one composite FitScore per calendar date,
explains which pillar held the day back, and caches results
per date with last-writer-wins ordering.

============================================================
WHAT IT IS
============================================================
- Deterministic, threshold-based scoring on a 0-10 scale
- Zones: GREEN (>= 7), YELLOW (>= 5), RED (< 5)
- Weak-link diagnosis with a single shared display rule
- Date-scoped: today is Editable, older dates are ReadOnly

============================================================
WHAT IT IS NOT
============================================================
- NOT a meal or workout scorer (pillar scores are inputs)
- NOT a UI or a coaching model

============================================================
USAGE
============================================================
    from fitscore import FitScoreService, InMemoryScoreStore

    service = FitScoreService(
        nutrition=my_nutrition_provider,
        training=my_training_provider,
        recovery=my_recovery_provider,
        store=InMemoryScoreStore(),
    )

    service.add_meal(today, meal)
    score = await service.compute(today)
    weak = await service.weak_link_for(today)

    print(f"FitScore: {score.fit_score}/10 ({score.zone.name})")
    print(weak.narrative)

============================================================
"""

# Types
from .types import (
    # Enums
    Pillar,
    Zone,
    WaterIntakeBand,
    DateState,
    LookupKind,

    # Day inputs
    NutritionDayContext,
    TimingSignals,
    WhoopSignals,
    TrainingSession,
    MealDetail,
    DayContext,

    # Scores
    PillarScore,
    ScoreContext,
    CompositeScore,
    StoredProjection,
    ScoreLookup,
    WeakLinkResult,
)

# Exceptions
from .errors import (
    Severity,
    FitScoreError,
    InputUnavailable,
    InvalidPillarScore,
    DateReadOnly,
    InvalidDate,
    ProviderFailure,
    StoreError,
)

# Configuration
from .config import (
    WeightingConfig,
    DiagnosticsConfig,
    CacheConfig,
    StorageConfig,
    ProjectionConfig,
    FitScoreConfig,
    get_default_config,
)

# Clock
from .clock import (
    ClockProtocol,
    SystemClock,
    FrozenClock,
)

# Scoring
from .aggregator import (
    WeightingPolicy,
    FixedWeightPolicy,
    ScoreAggregator,
)

from .formatting import (
    display_value,
    display_pillar,
    format_score_summary,
)

from .diagnostics import (
    WeakLinkDiagnostics,
    select_weak_pillar,
    build_day_context,
    diagnose,
    get_weak_link,
)

# Date lifecycle and cache
from .state_machine import (
    DateStateMachine,
    DateStateChange,
)

from .cache import (
    CacheNamespace,
    WriteOutcome,
    RequestTicket,
    TwoTierScoreCache,
)

# Collaborators
from .providers import (
    NutritionScoreResult,
    TrainingScoreResult,
    RecoveryScoreResult,
    NutritionScoreProvider,
    TrainingScoreProvider,
    RecoveryScoreProvider,
    PersistentScoreStore,
    InMemoryScoreStore,
    StoredScoreProjection,
    HttpStoredScoreProjection,
    NarrativeGenerator,
    WeakLinkNarrativeGenerator,
)

# Persistence
from .repository import (
    SqlScoreStore,
)

# Service
from .entries import DayEntryLog
from .service import FitScoreService
from .bootstrap import setup_logging, build_service


__all__ = [
    # Enums
    "Pillar",
    "Zone",
    "WaterIntakeBand",
    "DateState",
    "LookupKind",

    # Day inputs
    "NutritionDayContext",
    "TimingSignals",
    "WhoopSignals",
    "TrainingSession",
    "MealDetail",
    "DayContext",

    # Scores
    "PillarScore",
    "ScoreContext",
    "CompositeScore",
    "StoredProjection",
    "ScoreLookup",
    "WeakLinkResult",

    # Exceptions
    "Severity",
    "FitScoreError",
    "InputUnavailable",
    "InvalidPillarScore",
    "DateReadOnly",
    "InvalidDate",
    "ProviderFailure",
    "StoreError",

    # Configuration
    "WeightingConfig",
    "DiagnosticsConfig",
    "CacheConfig",
    "StorageConfig",
    "ProjectionConfig",
    "FitScoreConfig",
    "get_default_config",

    # Clock
    "ClockProtocol",
    "SystemClock",
    "FrozenClock",

    # Scoring
    "WeightingPolicy",
    "FixedWeightPolicy",
    "ScoreAggregator",
    "display_value",
    "display_pillar",
    "format_score_summary",
    "WeakLinkDiagnostics",
    "select_weak_pillar",
    "build_day_context",
    "diagnose",
    "get_weak_link",

    # Date lifecycle and cache
    "DateStateMachine",
    "DateStateChange",
    "CacheNamespace",
    "WriteOutcome",
    "RequestTicket",
    "TwoTierScoreCache",

    # Collaborators
    "NutritionScoreResult",
    "TrainingScoreResult",
    "RecoveryScoreResult",
    "NutritionScoreProvider",
    "TrainingScoreProvider",
    "RecoveryScoreProvider",
    "PersistentScoreStore",
    "InMemoryScoreStore",
    "StoredScoreProjection",
    "HttpStoredScoreProjection",
    "NarrativeGenerator",
    "WeakLinkNarrativeGenerator",

    # Persistence
    "SqlScoreStore",

    # Service
    "DayEntryLog",
    "FitScoreService",
    "setup_logging",
    "build_service",
]


__version__ = "1.0.0"
