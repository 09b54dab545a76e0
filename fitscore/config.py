"""
FitScore Engine - Configuration.

============================================================
PURPOSE
============================================================
Configuration dataclasses and threshold values for the
FitScore engine.

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable configurations
- Every threshold documented next to its default
- Environment overrides via from_env() (.env supported)
- Pillar weights are a product decision, not a constant

============================================================
ENVIRONMENT VARIABLES
============================================================
FITSCORE_WEIGHT_RECOVERY / _TRAINING / _NUTRITION
FITSCORE_EDITABLE_WINDOW_DAYS
FITSCORE_DATABASE_URL, FITSCORE_DB_ECHO
FITSCORE_PROJECTION_URL, FITSCORE_PROJECTION_TIMEOUT_SECONDS
LOG_LEVEL, LOG_FORMAT

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# ============================================================
# WEIGHTING CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class WeightingConfig:
    """
    Relative pillar weights for the default weighting policy.

    Weights are normalized by their sum, so only ratios matter.
    The shipped defaults weight the three pillars evenly until
    product confirms the final formula.
    """

    recovery: float = 1.0
    training: float = 1.0
    nutrition: float = 1.0

    @classmethod
    def from_env(cls) -> "WeightingConfig":
        return cls(
            recovery=float(os.getenv("FITSCORE_WEIGHT_RECOVERY", "1.0")),
            training=float(os.getenv("FITSCORE_WEIGHT_TRAINING", "1.0")),
            nutrition=float(os.getenv("FITSCORE_WEIGHT_NUTRITION", "1.0")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recovery": self.recovery,
            "training": self.training,
            "nutrition": self.nutrition,
        }


# ============================================================
# DIAGNOSTICS CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class DiagnosticsConfig:
    """
    Thresholds for weak-link reason selection.

    ============================================================
    THRESHOLD RATIONALE
    ============================================================
    Meal gap:
    - severity 2 at >= 7h: a skipped meal
    - severity 1 at >= 5h: a long stretch, not yet a miss

    Recovery chain:
    - short sleep below 6h
    - recovery dip below 40%
    - HRV more than 3ms below baseline

    Secondary reason is disclosed only when the top reason is
    at least severity 3 and the runner-up at least severity 2.

    ============================================================
    """

    long_gap_severe_hours: float = 7.0
    long_gap_mild_hours: float = 5.0

    short_sleep_hours: float = 6.0
    low_recovery_percent: float = 40.0
    hrv_margin_ms: float = 3.0
    low_training_score: float = 5.0

    secondary_min_primary_severity: int = 3
    secondary_min_second_severity: int = 2

    # Characters of the weakest meal's analysis quoted in the narrative
    analysis_excerpt_chars: int = 200

    def to_dict(self) -> Dict[str, Any]:
        return {
            "long_gap_severe_hours": self.long_gap_severe_hours,
            "long_gap_mild_hours": self.long_gap_mild_hours,
            "short_sleep_hours": self.short_sleep_hours,
            "low_recovery_percent": self.low_recovery_percent,
            "hrv_margin_ms": self.hrv_margin_ms,
            "low_training_score": self.low_training_score,
            "secondary_min_primary_severity": self.secondary_min_primary_severity,
            "secondary_min_second_severity": self.secondary_min_second_severity,
            "analysis_excerpt_chars": self.analysis_excerpt_chars,
        }


# ============================================================
# CACHE CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class CacheConfig:
    """
    Date-state window.

    editable_window_days=1 makes today and yesterday Editable
    and every earlier date ReadOnly.
    """

    editable_window_days: int = 1

    @classmethod
    def from_env(cls) -> "CacheConfig":
        return cls(
            editable_window_days=int(os.getenv("FITSCORE_EDITABLE_WINDOW_DAYS", "1")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"editable_window_days": self.editable_window_days}


# ============================================================
# STORAGE CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class StorageConfig:
    """Durable per-date store connection settings."""

    database_url: str = "sqlite+aiosqlite:///fitscore.db"
    echo: bool = False

    @classmethod
    def from_env(cls) -> "StorageConfig":
        return cls(
            database_url=os.getenv("FITSCORE_DATABASE_URL", "sqlite+aiosqlite:///fitscore.db"),
            echo=_env_bool("FITSCORE_DB_ECHO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        # Credentials stay out of logs
        return {
            "database_url": self.database_url.split("@")[-1],
            "echo": self.echo,
        }


# ============================================================
# STORED-SCORE PROJECTION CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class ProjectionConfig:
    """
    Remote stored-score projection endpoint.

    base_url=None disables the remote fallback; ReadOnly
    lookups then end at the durable store.
    """

    base_url: Optional[str] = None
    path_template: str = "/api/fitscore/stored/{date}"
    timeout_seconds: float = 15.0

    @classmethod
    def from_env(cls) -> "ProjectionConfig":
        return cls(
            base_url=os.getenv("FITSCORE_PROJECTION_URL") or None,
            timeout_seconds=float(os.getenv("FITSCORE_PROJECTION_TIMEOUT_SECONDS", "15")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "path_template": self.path_template,
            "timeout_seconds": self.timeout_seconds,
        }


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class FitScoreConfig:
    """Complete engine configuration."""

    weighting: WeightingConfig = field(default_factory=WeightingConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)

    log_level: str = "INFO"
    log_format: str = "text"

    engine_version: str = "1.0.0"

    @classmethod
    def from_env(cls) -> "FitScoreConfig":
        """Load configuration from environment variables and .env."""
        load_dotenv()
        return cls(
            weighting=WeightingConfig.from_env(),
            cache=CacheConfig.from_env(),
            storage=StorageConfig.from_env(),
            projection=ProjectionConfig.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        weights = self.weighting.to_dict()
        if any(w < 0 for w in weights.values()):
            errors.append("pillar weights must be non-negative")
        if sum(weights.values()) <= 0:
            errors.append("at least one pillar weight must be positive")

        if self.cache.editable_window_days < 0:
            errors.append("editable_window_days must be >= 0")

        d = self.diagnostics
        if d.long_gap_mild_hours > d.long_gap_severe_hours:
            errors.append("long_gap_mild_hours must not exceed long_gap_severe_hours")
        if d.analysis_excerpt_chars < 0:
            errors.append("analysis_excerpt_chars must be >= 0")

        if self.log_format not in ("json", "text"):
            errors.append("log_format must be 'json' or 'text'")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weighting": self.weighting.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
            "cache": self.cache.to_dict(),
            "storage": self.storage.to_dict(),
            "projection": self.projection.to_dict(),
            "log_level": self.log_level,
            "log_format": self.log_format,
            "engine_version": self.engine_version,
        }


def get_default_config() -> FitScoreConfig:
    """Get default configuration."""
    return FitScoreConfig()
