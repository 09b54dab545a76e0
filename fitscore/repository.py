"""
FitScore Engine - Repository.

============================================================
PURPOSE
============================================================
SQL implementation of the durable per-date store.

Provides:
- Whole-record upsert of a date's CompositeScore
- Independent narrative slot per date
- Deletion for explicit recalculation

============================================================
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from .errors import StoreError
from .models import DailyScoreRecord, NarrativeRecord
from .providers import PersistentScoreStore
from .types import CompositeScore


logger = logging.getLogger(__name__)


class SqlScoreStore(PersistentScoreStore):
    """
    Durable store backed by SQLAlchemy.

    ============================================================
    METHODS
    ============================================================
    - get / put / delete: CompositeScore namespace
    - get_narrative / put_narrative / delete_narrative:
      narrative namespace

    Every call runs in its own transaction.

    ============================================================
    """

    def __init__(self, session_factory: async_sessionmaker):
        """
        Args:
            session_factory: SQLAlchemy async session factory
        """
        self._session_factory = session_factory

    # --------------------------------------------------------
    # SCORE NAMESPACE
    # --------------------------------------------------------

    async def get(self, score_date: date) -> Optional[CompositeScore]:
        try:
            async with self._session_factory() as session:
                record = await session.get(DailyScoreRecord, score_date.isoformat())
                if record is None:
                    return None
                return CompositeScore.from_dict(record.payload)
        except SQLAlchemyError as e:
            raise StoreError("get", score_date, cause=e) from e

    async def put(self, score_date: date, score: CompositeScore) -> None:
        """Insert or wholly replace the score for a date."""
        key = score_date.isoformat()
        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    record = await session.get(DailyScoreRecord, key)
                    if record is None:
                        record = DailyScoreRecord(score_date=key)
                        session.add(record)
                    record.fit_score = score.fit_score
                    record.zone = score.zone.value
                    record.payload = score.to_dict()
                    record.computed_at = score.computed_at
                    record.updated_at = now
        except SQLAlchemyError as e:
            raise StoreError("put", score_date, cause=e) from e

        logger.debug(f"Stored FitScore {score.fit_score} for {key}")

    async def delete(self, score_date: date) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(DailyScoreRecord).where(
                            DailyScoreRecord.score_date == score_date.isoformat()
                        )
                    )
        except SQLAlchemyError as e:
            raise StoreError("delete", score_date, cause=e) from e

    # --------------------------------------------------------
    # NARRATIVE NAMESPACE
    # --------------------------------------------------------

    async def get_narrative(self, score_date: date) -> Optional[str]:
        try:
            async with self._session_factory() as session:
                record = await session.get(NarrativeRecord, score_date.isoformat())
                return record.narrative if record is not None else None
        except SQLAlchemyError as e:
            raise StoreError("get_narrative", score_date, cause=e) from e

    async def put_narrative(self, score_date: date, narrative: str) -> None:
        key = score_date.isoformat()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    record = await session.get(NarrativeRecord, key)
                    if record is None:
                        record = NarrativeRecord(score_date=key)
                        session.add(record)
                    record.narrative = narrative
                    record.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as e:
            raise StoreError("put_narrative", score_date, cause=e) from e

    async def delete_narrative(self, score_date: date) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(NarrativeRecord).where(
                            NarrativeRecord.score_date == score_date.isoformat()
                        )
                    )
        except SQLAlchemyError as e:
            raise StoreError("delete_narrative", score_date, cause=e) from e
