"""
FitScore Engine - Day Entry Log.

============================================================
PURPOSE
============================================================
In-process record of what was logged per date: meals,
training sessions and the hydration band. It answers "is
there anything to score yet?" without touching a provider,
and feeds the current meal / session lists to diagnostics.

Mutation guards (Editable vs ReadOnly) live in the service;
this log only keeps the entries.

============================================================
"""

import uuid
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional

from .types import MealDetail, TrainingSession, WaterIntakeBand


class DayEntryLog:
    """Meals, sessions and hydration band keyed by date."""

    def __init__(self) -> None:
        self._meals: Dict[date, List[MealDetail]] = {}
        self._sessions: Dict[date, List[TrainingSession]] = {}
        self._water: Dict[date, WaterIntakeBand] = {}

    # --------------------------------------------------------
    # READS
    # --------------------------------------------------------

    def meals(self, score_date: date) -> List[MealDetail]:
        return list(self._meals.get(score_date, []))

    def sessions(self, score_date: date) -> List[TrainingSession]:
        return list(self._sessions.get(score_date, []))

    def water_band(self, score_date: date) -> Optional[WaterIntakeBand]:
        return self._water.get(score_date)

    def meal_count(self, score_date: date) -> int:
        return len(self._meals.get(score_date, []))

    def session_count(self, score_date: date) -> int:
        return len(self._sessions.get(score_date, []))

    # --------------------------------------------------------
    # MEALS
    # --------------------------------------------------------

    def add_meal(self, score_date: date, meal: MealDetail) -> MealDetail:
        """Append a meal, assigning an entry_id if it has none."""
        if meal.entry_id is None:
            meal = replace(meal, entry_id=uuid.uuid4().hex)
        self._meals.setdefault(score_date, []).append(meal)
        return meal

    def update_meal(self, score_date: date, meal: MealDetail) -> MealDetail:
        self._meals[score_date] = self._replace(self._meals.get(score_date, []), meal)
        return meal

    def delete_meal(self, score_date: date, entry_id: str) -> None:
        self._meals[score_date] = self._remove(self._meals.get(score_date, []), entry_id)

    # --------------------------------------------------------
    # SESSIONS
    # --------------------------------------------------------

    def add_session(self, score_date: date, session: TrainingSession) -> TrainingSession:
        if session.entry_id is None:
            session = replace(session, entry_id=uuid.uuid4().hex)
        self._sessions.setdefault(score_date, []).append(session)
        return session

    def update_session(self, score_date: date, session: TrainingSession) -> TrainingSession:
        self._sessions[score_date] = self._replace(self._sessions.get(score_date, []), session)
        return session

    def delete_session(self, score_date: date, entry_id: str) -> None:
        self._sessions[score_date] = self._remove(self._sessions.get(score_date, []), entry_id)

    # --------------------------------------------------------
    # HYDRATION
    # --------------------------------------------------------

    def set_water_band(self, score_date: date, band: Optional[WaterIntakeBand]) -> None:
        if band is None:
            self._water.pop(score_date, None)
        else:
            self._water[score_date] = WaterIntakeBand(band)

    # --------------------------------------------------------
    # HELPERS
    # --------------------------------------------------------

    @staticmethod
    def _replace(entries: list, updated) -> list:
        if updated.entry_id is None:
            raise ValueError("entry_id is required to update an entry")
        for i, entry in enumerate(entries):
            if entry.entry_id == updated.entry_id:
                return entries[:i] + [updated] + entries[i + 1:]
        raise KeyError(updated.entry_id)

    @staticmethod
    def _remove(entries: list, entry_id: str) -> list:
        remaining = [e for e in entries if e.entry_id != entry_id]
        if len(remaining) == len(entries):
            raise KeyError(entry_id)
        return remaining
