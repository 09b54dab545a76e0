"""
FitScore Engine - Error Taxonomy.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions raised by the FitScore engine.

- Provides a clear exception hierarchy
- Separates caller mistakes from collaborator failures
- Carries context for debugging and logging

============================================================
EXCEPTION HIERARCHY
============================================================
FitScoreError (base)
├── InputUnavailable      no nutrition entries yet
├── ProviderFailure       one or more pillar providers failed
├── DateReadOnly          date is frozen history
├── InvalidDate           date is in the future
├── InvalidPillarScore    raw score outside [0, 10]
└── StoreError            durable store failure

NOT EXCEPTIONS:
- A superseded write is reported as WriteOutcome.STALE
- A ReadOnly date with nothing logged is LookupKind.EMPTY

============================================================
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    """Expected condition, informational."""

    MEDIUM = "medium"
    """Caller must act (log a meal, pick another date)."""

    HIGH = "high"
    """Collaborator failure, caller may retry."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class FitScoreError(Exception):
    """
    Base exception for all FitScore engine errors.

    All exceptions carry:
    - severity: for logging
    - context: for debugging
    - recoverable: whether re-invoking may succeed
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        base = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        return f"{base} | {ctx_str}" if ctx_str else base


# ============================================================
# INPUT ERRORS
# ============================================================

class InputUnavailable(FitScoreError):
    """
    Nutrition has no entries for the date.

    Raised before any provider is touched.
    """

    default_severity = Severity.LOW

    def __init__(self, score_date: date, message: Optional[str] = None):
        super().__init__(
            message or f"No meals logged for {score_date.isoformat()}",
            context={"date": score_date.isoformat()},
        )
        self.score_date = score_date


class InvalidPillarScore(FitScoreError):
    """Pillar raw score is outside the 0-10 scale."""

    default_recoverable = False

    def __init__(self, pillar: str, value: float):
        super().__init__(
            f"{pillar} score {value} is outside [0, 10]",
            context={"pillar": pillar, "value": value},
        )
        self.pillar = pillar
        self.value = value


# ============================================================
# DATE STATE ERRORS
# ============================================================

class DateReadOnly(FitScoreError):
    """Date is frozen history and cannot be mutated or recomputed."""

    default_recoverable = False

    def __init__(self, score_date: date, operation: str = "compute"):
        super().__init__(
            f"{score_date.isoformat()} is read-only; {operation} is not permitted",
            context={"date": score_date.isoformat(), "operation": operation},
        )
        self.score_date = score_date
        self.operation = operation


class InvalidDate(FitScoreError):
    """Date lies in the future relative to the clock."""

    default_recoverable = False

    def __init__(self, score_date: date, today: date):
        super().__init__(
            f"{score_date.isoformat()} is after today ({today.isoformat()})",
            context={"date": score_date.isoformat(), "today": today.isoformat()},
        )
        self.score_date = score_date


# ============================================================
# COLLABORATOR ERRORS
# ============================================================

class ProviderFailure(FitScoreError):
    """
    One or more pillar providers failed during compute.

    All failures of a single compute are aggregated into one
    error. Nothing is cached when this is raised.
    """

    default_severity = Severity.HIGH

    def __init__(self, score_date: date, failures: Dict[str, BaseException]):
        names = ", ".join(sorted(failures))
        first = next(iter(failures.values()), None)
        super().__init__(
            f"Provider failure for {score_date.isoformat()}: {names}",
            context={
                "date": score_date.isoformat(),
                "providers": sorted(failures),
            },
            cause=first if isinstance(first, Exception) else None,
        )
        self.score_date = score_date
        self.failures = failures

    @property
    def provider_names(self) -> List[str]:
        return sorted(self.failures)


class StoreError(FitScoreError):
    """Durable per-date store failed."""

    default_severity = Severity.HIGH

    def __init__(self, operation: str, score_date: date, cause: Optional[Exception] = None):
        super().__init__(
            f"Store {operation} failed for {score_date.isoformat()}",
            context={"operation": operation, "date": score_date.isoformat()},
            cause=cause,
        )
        self.operation = operation
        self.score_date = score_date
