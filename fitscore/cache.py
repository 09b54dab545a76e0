"""
FitScore Engine - Two-Tier Score Cache.

============================================================
PURPOSE
============================================================
Date-scoped cache for CompositeScores and coaching narratives.

TIERS:
1. In-process map (lost on restart)
2. Durable per-date store (PersistentScoreStore)

Reads check memory, then durable (repopulating memory on a
hit). Writes go through both tiers.

============================================================
NAMESPACES
============================================================
SCORE and NARRATIVE are independent slots per date. Writing,
invalidating or regenerating one never touches the other,
except invalidate() which clears both for a single date.

============================================================
ORDERING
============================================================
Every request takes a ticket from a monotonically increasing
per-(namespace, date) counter when it is ISSUED. A commit is
applied only if its ticket is still the latest for its slot;
otherwise it is discarded as STALE (a no-op, not an error).

Writes are keyed by the ticket's date, never by whichever
date is currently being viewed. Commits for one slot are
serialized by a per-slot lock, so a slow durable write of a
superseded request cannot land after a newer one.

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .providers import PersistentScoreStore
from .types import CompositeScore


logger = logging.getLogger(__name__)


# ============================================================
# TYPES
# ============================================================


class CacheNamespace(str, Enum):
    SCORE = "score"
    NARRATIVE = "narrative"


class WriteOutcome(str, Enum):
    WRITTEN = "written"
    STALE = "stale"


@dataclass(frozen=True)
class RequestTicket:
    """Identity of one issued request for a cache slot."""

    namespace: CacheNamespace
    date: date
    sequence: int


_Slot = Tuple[CacheNamespace, date]


# ============================================================
# CACHE
# ============================================================


class TwoTierScoreCache:
    """
    Write-through cache with read-through durable fallback.

    This is the only shared mutable state of the engine.
    """

    def __init__(self, store: PersistentScoreStore):
        self._store = store
        self._memory: Dict[CacheNamespace, Dict[date, Any]] = {
            CacheNamespace.SCORE: {},
            CacheNamespace.NARRATIVE: {},
        }
        self._issued: Dict[_Slot, int] = {}
        self._locks: Dict[_Slot, asyncio.Lock] = {}

    @property
    def store(self) -> PersistentScoreStore:
        return self._store

    # --------------------------------------------------------
    # REQUEST TICKETS
    # --------------------------------------------------------

    def begin_request(self, namespace: CacheNamespace, score_date: date) -> RequestTicket:
        """Issue the next ticket for a slot."""
        slot = (namespace, score_date)
        sequence = self._issued.get(slot, 0) + 1
        self._issued[slot] = sequence
        return RequestTicket(namespace, score_date, sequence)

    def latest_sequence(self, namespace: CacheNamespace, score_date: date) -> int:
        return self._issued.get((namespace, score_date), 0)

    def is_latest(self, ticket: RequestTicket) -> bool:
        return ticket.sequence == self.latest_sequence(ticket.namespace, ticket.date)

    def _lock(self, slot: _Slot) -> asyncio.Lock:
        lock = self._locks.get(slot)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[slot] = lock
        return lock

    # --------------------------------------------------------
    # READS
    # --------------------------------------------------------

    def peek_score(self, score_date: date) -> Optional[CompositeScore]:
        """In-process tier only."""
        return self._memory[CacheNamespace.SCORE].get(score_date)

    def peek_narrative(self, score_date: date) -> Optional[str]:
        return self._memory[CacheNamespace.NARRATIVE].get(score_date)

    async def get_score(self, score_date: date) -> Tuple[Optional[CompositeScore], Optional[str]]:
        """
        Read a score through both tiers.

        Returns:
            (score, source) where source is "memory", "durable"
            or None on a miss
        """
        return await self._read(CacheNamespace.SCORE, score_date, self._store.get)

    async def get_narrative(self, score_date: date) -> Tuple[Optional[str], Optional[str]]:
        return await self._read(CacheNamespace.NARRATIVE, score_date, self._store.get_narrative)

    async def _read(self, namespace: CacheNamespace, score_date: date, durable_get):
        memory = self._memory[namespace]
        if score_date in memory:
            logger.debug(f"{namespace.value} cache hit (memory) for {score_date.isoformat()}")
            return memory[score_date], "memory"

        sequence = self.latest_sequence(namespace, score_date)
        value = await durable_get(score_date)
        if value is None:
            return None, None

        # A commit or invalidation that landed while reading wins.
        if score_date not in memory and self.latest_sequence(namespace, score_date) == sequence:
            memory[score_date] = value
        logger.debug(f"{namespace.value} cache hit (durable) for {score_date.isoformat()}")
        return memory.get(score_date, value), "durable"

    # --------------------------------------------------------
    # WRITES
    # --------------------------------------------------------

    async def commit_score(self, ticket: RequestTicket, score: CompositeScore) -> WriteOutcome:
        """Write a computed score if its ticket is still the latest."""
        if ticket.namespace != CacheNamespace.SCORE:
            raise ValueError("commit_score requires a SCORE ticket")
        return await self._commit(ticket, score, self._store.put)

    async def commit_narrative(self, ticket: RequestTicket, narrative: str) -> WriteOutcome:
        if ticket.namespace != CacheNamespace.NARRATIVE:
            raise ValueError("commit_narrative requires a NARRATIVE ticket")
        return await self._commit(ticket, narrative, self._store.put_narrative)

    async def _commit(self, ticket: RequestTicket, value: Any, durable_put) -> WriteOutcome:
        slot = (ticket.namespace, ticket.date)
        async with self._lock(slot):
            if not self.is_latest(ticket):
                logger.debug(
                    f"Discarded stale {ticket.namespace.value} write for "
                    f"{ticket.date.isoformat()} (#{ticket.sequence}, "
                    f"latest #{self.latest_sequence(*slot)})"
                )
                return WriteOutcome.STALE

            await durable_put(ticket.date, value)
            self._memory[ticket.namespace][ticket.date] = value
            return WriteOutcome.WRITTEN

    # --------------------------------------------------------
    # INVALIDATION
    # --------------------------------------------------------

    async def invalidate(self, score_date: date) -> None:
        """
        Clear both namespaces for one date in both tiers.

        In-flight requests for the date become stale. Other
        dates are untouched.
        """
        for namespace in CacheNamespace:
            self.begin_request(namespace, score_date)

        await self._clear_slot(CacheNamespace.SCORE, score_date, self._store.delete)
        await self._clear_slot(CacheNamespace.NARRATIVE, score_date, self._store.delete_narrative)
        logger.info(f"Invalidated cache for {score_date.isoformat()}")

    async def invalidate_narrative(self, score_date: date) -> None:
        """Clear the narrative slot only."""
        self.begin_request(CacheNamespace.NARRATIVE, score_date)
        await self._clear_slot(CacheNamespace.NARRATIVE, score_date, self._store.delete_narrative)

    async def _clear_slot(self, namespace: CacheNamespace, score_date: date, durable_delete) -> None:
        # Under the slot lock, so a commit already past its check lands first
        async with self._lock((namespace, score_date)):
            await durable_delete(score_date)
            self._memory[namespace].pop(score_date, None)

    def clear_memory(self) -> None:
        """Drop the in-process tier, as a process restart would."""
        for namespace in CacheNamespace:
            self._memory[namespace].clear()
