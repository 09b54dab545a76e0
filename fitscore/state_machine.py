"""
FitScore Engine - Date State Machine.

============================================================
PURPOSE
============================================================
Decides whether a calendar date is still mutable.

STATE MACHINE:

    EDITABLE (today, yesterday)
        │
        │  clock passes the editable window
        ▼
    READ_ONLY (any earlier date)

The state of a date is a pure function of (date, today).
Nothing else moves a date between states, and a date never
returns from READ_ONLY.

INVARIANTS:
- Future dates are rejected
- Mutations and compute require EDITABLE
- Observed transitions are logged and recorded

============================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, FrozenSet, List, Optional

from .clock import ClockProtocol, SystemClock
from .errors import DateReadOnly, InvalidDate
from .types import DateState


logger = logging.getLogger(__name__)


# ============================================================
# PERMITTED OPERATIONS
# ============================================================

MUTATING_OPERATIONS: FrozenSet[str] = frozenset({
    "compute",
    "recalculate",
    "add_meal",
    "update_meal",
    "delete_meal",
    "add_session",
    "update_session",
    "delete_session",
    "set_water_band",
})

PERMITTED_OPERATIONS: Dict[DateState, FrozenSet[str]] = {
    DateState.EDITABLE: MUTATING_OPERATIONS | {"lookup", "narrative"},
    DateState.READ_ONLY: frozenset({"lookup", "narrative"}),
}


# ============================================================
# STATE CHANGE EVENT
# ============================================================

@dataclass
class DateStateChange:
    """A date observed in a different state than last time."""

    date: date
    """Calendar date."""

    from_state: DateState
    """Previously observed state."""

    to_state: DateState
    """Newly observed state."""

    timestamp: datetime
    """When the change was observed."""

    details: Dict[str, str] = field(default_factory=dict)


# ============================================================
# DATE STATE MACHINE
# ============================================================

class DateStateMachine:
    """
    Resolves Editable / ReadOnly state for dates.

    The current date always comes from the clock; callers pass
    the date they are asking about explicitly.
    """

    def __init__(
        self,
        clock: Optional[ClockProtocol] = None,
        editable_window_days: int = 1,
    ):
        """
        Args:
            clock: Source of "today"
            editable_window_days: Days before today that stay
                editable (1 = today and yesterday)
        """
        self._clock = clock or SystemClock()
        self._window = editable_window_days
        self._observed: Dict[date, DateState] = {}
        self._history: List[DateStateChange] = []
        self._listeners: List[Callable[[DateStateChange], None]] = []

    @property
    def history(self) -> List[DateStateChange]:
        return list(self._history)

    def add_listener(self, listener: Callable[[DateStateChange], None]) -> None:
        self._listeners.append(listener)

    def today(self) -> date:
        return self._clock.today()

    def state_for(self, score_date: date) -> DateState:
        """
        Resolve the state of a date.

        Raises:
            InvalidDate: If the date is after today
        """
        today = self._clock.today()
        if score_date > today:
            raise InvalidDate(score_date, today)

        if score_date >= today - timedelta(days=self._window):
            state = DateState.EDITABLE
        else:
            state = DateState.READ_ONLY

        self._observe(score_date, state)
        return state

    def is_editable(self, score_date: date) -> bool:
        return self.state_for(score_date) == DateState.EDITABLE

    def can_perform(self, score_date: date, operation: str) -> bool:
        return operation in PERMITTED_OPERATIONS[self.state_for(score_date)]

    def require(self, score_date: date, operation: str) -> DateState:
        """
        Guard an operation on a date.

        Raises:
            DateReadOnly: If the operation is not permitted
            InvalidDate: If the date is after today
        """
        state = self.state_for(score_date)
        if operation not in PERMITTED_OPERATIONS[state]:
            logger.info(
                f"Refused {operation} on {score_date.isoformat()} ({state.value})"
            )
            raise DateReadOnly(score_date, operation)
        return state

    def require_editable(self, score_date: date) -> None:
        """Raise DateReadOnly unless the date is still Editable."""
        self.require(score_date, "compute")

    def label_for(self, score_date: date) -> str:
        """Human label: "today", "yesterday" or the ISO date."""
        today = self._clock.today()
        if score_date == today:
            return "today"
        if score_date == today - timedelta(days=1):
            return "yesterday"
        return score_date.isoformat()

    def _observe(self, score_date: date, state: DateState) -> None:
        previous = self._observed.get(score_date)
        self._observed[score_date] = state
        if previous is None or previous == state:
            return

        event = DateStateChange(
            date=score_date,
            from_state=previous,
            to_state=state,
            timestamp=self._clock.now(),
        )
        self._history.append(event)
        logger.info(
            f"Date {score_date.isoformat()} moved {previous.value} -> {state.value}"
        )
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Date state listener failed: {e}")
