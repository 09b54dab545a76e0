"""
FitScore Engine - External Collaborators.

============================================================
PURPOSE
============================================================
Contracts for everything the engine consumes but does not
own. All collaborator calls are asynchronous and are the only
suspension points of the engine.

============================================================
COLLABORATORS
============================================================
- NutritionScoreProvider   meal count, average score, meals
- TrainingScoreProvider    session count, average score, sessions
- RecoveryScoreProvider    recovery score and WHOOP signals
- PersistentScoreStore     durable per-date score / narrative
- StoredScoreProjection    read-only score for past dates
- NarrativeGenerator       coaching narrative for a weak link

============================================================
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import aiohttp

from .config import ProjectionConfig
from .types import (
    CompositeScore,
    MealDetail,
    NutritionDayContext,
    Pillar,
    PillarScore,
    StoredProjection,
    TimingSignals,
    TrainingSession,
    WeakLinkResult,
    WhoopSignals,
)


logger = logging.getLogger(__name__)


# ============================================================
# PROVIDER RESULTS
# ============================================================


@dataclass(frozen=True)
class NutritionScoreResult:
    """Nutrition pillar for one date."""

    meal_count: int
    average_score: float
    meals: List[MealDetail] = field(default_factory=list)
    day_context: Optional[NutritionDayContext] = None
    timing_signals: Optional[TimingSignals] = None

    def to_pillar(self) -> PillarScore:
        return PillarScore(Pillar.NUTRITION, self.average_score, self.meal_count)


@dataclass(frozen=True)
class TrainingScoreResult:
    """Training pillar for one date."""

    session_count: int
    average_score: float
    sessions: List[TrainingSession] = field(default_factory=list)

    def to_pillar(self) -> PillarScore:
        return PillarScore(Pillar.TRAINING, self.average_score, self.session_count)


@dataclass(frozen=True)
class RecoveryScoreResult:
    """Recovery pillar for one date."""

    score: float
    sleep_hours: Optional[float] = None
    recovery_percent: Optional[float] = None
    hrv: Optional[float] = None
    hrv_baseline: Optional[float] = None

    def to_pillar(self) -> PillarScore:
        return PillarScore(Pillar.RECOVERY, self.score, 0)

    def to_signals(self) -> WhoopSignals:
        return WhoopSignals(
            sleep_hours=self.sleep_hours,
            recovery_percent=self.recovery_percent,
            hrv=self.hrv,
            hrv_baseline=self.hrv_baseline,
        )


# ============================================================
# PILLAR PROVIDERS
# ============================================================


class NutritionScoreProvider(ABC):
    @abstractmethod
    async def get(self, score_date: date) -> NutritionScoreResult:
        pass


class TrainingScoreProvider(ABC):
    @abstractmethod
    async def get(self, score_date: date) -> TrainingScoreResult:
        pass


class RecoveryScoreProvider(ABC):
    @abstractmethod
    async def get(self, score_date: date) -> RecoveryScoreResult:
        pass


# ============================================================
# DURABLE STORE
# ============================================================


class PersistentScoreStore(ABC):
    """
    Durable per-date store for scores and narratives.

    The two namespaces are independent: writing or deleting one
    never touches the other. put() replaces the whole record.
    """

    @abstractmethod
    async def get(self, score_date: date) -> Optional[CompositeScore]:
        pass

    @abstractmethod
    async def put(self, score_date: date, score: CompositeScore) -> None:
        pass

    @abstractmethod
    async def delete(self, score_date: date) -> None:
        pass

    @abstractmethod
    async def get_narrative(self, score_date: date) -> Optional[str]:
        pass

    @abstractmethod
    async def put_narrative(self, score_date: date, narrative: str) -> None:
        pass

    @abstractmethod
    async def delete_narrative(self, score_date: date) -> None:
        pass


class InMemoryScoreStore(PersistentScoreStore):
    """
    Dict-backed store.

    Records are kept as serialized dicts so a read returns an
    equal, independent CompositeScore, as the SQL store does.
    """

    def __init__(self) -> None:
        self._scores: Dict[date, dict] = {}
        self._narratives: Dict[date, str] = {}

    async def get(self, score_date: date) -> Optional[CompositeScore]:
        data = self._scores.get(score_date)
        return CompositeScore.from_dict(data) if data is not None else None

    async def put(self, score_date: date, score: CompositeScore) -> None:
        self._scores[score_date] = score.to_dict()

    async def delete(self, score_date: date) -> None:
        self._scores.pop(score_date, None)

    async def get_narrative(self, score_date: date) -> Optional[str]:
        return self._narratives.get(score_date)

    async def put_narrative(self, score_date: date, narrative: str) -> None:
        self._narratives[score_date] = narrative

    async def delete_narrative(self, score_date: date) -> None:
        self._narratives.pop(score_date, None)


# ============================================================
# STORED-SCORE PROJECTION
# ============================================================


class StoredScoreProjection(ABC):
    """Read-only reduced score for past dates."""

    @abstractmethod
    async def get(self, score_date: date) -> Optional[StoredProjection]:
        pass


class HttpStoredScoreProjection(StoredScoreProjection):
    """
    Stored-score projection fetched over HTTP.

    GET {base_url}{path_template} returning {"score": <float>}.
    404 or a null body means nothing was stored for the date.
    Other failures raise aiohttp.ClientError.
    """

    def __init__(
        self,
        config: ProjectionConfig,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not config.base_url:
            raise ValueError("ProjectionConfig.base_url is required")
        self.config = config
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    def url_for(self, score_date: date) -> str:
        path = self.config.path_template.format(date=score_date.isoformat())
        return self.config.base_url.rstrip("/") + path

    async def get(self, score_date: date) -> Optional[StoredProjection]:
        session = await self._get_session()
        url = self.url_for(score_date)

        async with session.get(url) as response:
            if response.status == 404:
                logger.debug(f"No stored score for {score_date.isoformat()}")
                return None
            if response.status >= 400:
                logger.warning(f"Stored-score projection returned {response.status} for {url}")
            response.raise_for_status()
            payload = await response.json()

        if not payload or payload.get("score") is None:
            return None
        return StoredProjection(date=score_date, score=float(payload["score"]))

    async def close(self) -> None:
        """Close the aiohttp session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()


# ============================================================
# NARRATIVE GENERATION
# ============================================================


class NarrativeGenerator(ABC):
    """Turns a weak-link diagnosis into a coaching narrative."""

    @abstractmethod
    async def generate(self, score: CompositeScore, weak_link: WeakLinkResult) -> str:
        pass


class WeakLinkNarrativeGenerator(NarrativeGenerator):
    """Uses the weak-link narrative as the coaching narrative unchanged."""

    async def generate(self, score: CompositeScore, weak_link: WeakLinkResult) -> str:
        return weak_link.narrative
