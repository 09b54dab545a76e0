"""
FitScore Engine - Clock.

============================================================
RESPONSIBILITY
============================================================
Provides a testable clock abstraction for date-state decisions.

- "Today" is the user's LOCAL calendar date
- computed_at timestamps are timezone-aware
- Mockable so Editable/ReadOnly transitions can be tested

============================================================
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Optional


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Abstract interface for the engine clock."""

    @abstractmethod
    def now(self) -> datetime:
        """Get current timezone-aware datetime."""
        pass

    def today(self) -> date:
        """Get current local calendar date."""
        return self.now().date()


# ============================================================
# SYSTEM CLOCK (PRODUCTION)
# ============================================================

class SystemClock(ClockProtocol):
    """
    Production clock using the local system time.

    Dates are local calendar dates; a day rolls over at local
    midnight, not UTC midnight.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc).astimezone()


# ============================================================
# FROZEN CLOCK (TESTING)
# ============================================================

class FrozenClock(ClockProtocol):
    """
    Clock pinned to a fixed instant.

    Used in tests to drive date-state transitions
    deterministically.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        initial_time = initial_time or datetime.now(timezone.utc)
        if initial_time.tzinfo is None:
            initial_time = initial_time.replace(tzinfo=timezone.utc)
        self._time = initial_time

    @classmethod
    def on(cls, day: date, hour: int = 12) -> "FrozenClock":
        """Create a clock frozen at the given hour of a calendar day."""
        return cls(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._time

    def set_time(self, new_time: datetime) -> None:
        if new_time.tzinfo is None:
            new_time = new_time.replace(tzinfo=timezone.utc)
        self._time = new_time

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.

        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        self._time = self._time + timedelta(seconds=seconds, **kwargs)
