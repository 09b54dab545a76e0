"""
FitScore Engine - Persistence Models.

============================================================
PURPOSE
============================================================
ORM models for the durable per-date store.

============================================================
MODELS
============================================================
1. DailyScoreRecord: full CompositeScore per date
2. NarrativeRecord: coaching narrative per date

The two tables are independent so a narrative can be
regenerated without touching the score, and vice versa.

============================================================
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


# ============================================================
# DAILY SCORE MODEL
# ============================================================


class DailyScoreRecord(Base):
    """
    Latest CompositeScore for a calendar date.

    payload holds CompositeScore.to_dict(); fit_score and zone
    are denormalized for querying.
    """

    __tablename__ = "fitscore_daily"

    # ISO date, one row per date
    score_date: Mapped[str] = mapped_column(String(10), primary_key=True)

    fit_score: Mapped[float] = mapped_column(Float, nullable=False)
    zone: Mapped[str] = mapped_column(String(8), nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<DailyScoreRecord {self.score_date} fit_score={self.fit_score} zone={self.zone}>"


# ============================================================
# NARRATIVE MODEL
# ============================================================


class NarrativeRecord(Base):
    """Coaching narrative for a calendar date."""

    __tablename__ = "fitscore_narratives"

    score_date: Mapped[str] = mapped_column(String(10), primary_key=True)
    narrative: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<NarrativeRecord {self.score_date} chars={len(self.narrative)}>"
