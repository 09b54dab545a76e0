"""
FitScore Engine - Service.

============================================================
PURPOSE
============================================================
The only component exposed to outside collaborators. Wires
the date state machine, the two-tier cache, the pillar
providers, the aggregator and the diagnostics together.

============================================================
OPERATIONS
============================================================
- compute(date)              full pipeline, Editable dates only
- recalculate(date)          clear both cache slots, recompute
- get_cached_or_stored(date) tagged lookup, never raises
- get_weak_link(...)         pure diagnosis
- weak_link_for(date)        diagnosis from cache + day log
- get_narrative(date)        cached coaching narrative
- regenerate_narrative(date) new narrative, same score
- day-log mutations          Editable dates only

============================================================
COMPUTE PIPELINE
============================================================
1. Guard: date must be Editable (DateReadOnly)
2. Guard: at least one meal logged (InputUnavailable),
   checked before any provider is touched
3. Issue a request ticket for (SCORE, date)
4. Await the three pillar providers together
5. Any provider error -> one ProviderFailure, nothing cached
6. Aggregate into a CompositeScore
7. Commit; a superseded ticket is silently discarded

No automatic retry: retrying means calling compute again.

============================================================
"""

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

from sqlalchemy.ext.asyncio import AsyncEngine

from .aggregator import FixedWeightPolicy, ScoreAggregator, WeightingPolicy
from .cache import CacheNamespace, TwoTierScoreCache, WriteOutcome
from .clock import ClockProtocol, SystemClock
from .config import FitScoreConfig
from .diagnostics import WeakLinkDiagnostics, build_day_context
from .entries import DayEntryLog
from .errors import InputUnavailable, InvalidDate, ProviderFailure
from .providers import (
    NarrativeGenerator,
    NutritionScoreProvider,
    PersistentScoreStore,
    RecoveryScoreProvider,
    StoredScoreProjection,
    TrainingScoreProvider,
    WeakLinkNarrativeGenerator,
)
from .state_machine import DateStateMachine
from .types import (
    CompositeScore,
    DateState,
    LookupKind,
    MealDetail,
    ScoreContext,
    ScoreLookup,
    TrainingSession,
    WaterIntakeBand,
    WeakLinkResult,
)


logger = logging.getLogger(__name__)


class FitScoreService:
    """
    Date-scoped FitScore service.

    Every public call takes the date explicitly; there is no
    "currently viewed date".
    """

    def __init__(
        self,
        nutrition: NutritionScoreProvider,
        training: TrainingScoreProvider,
        recovery: RecoveryScoreProvider,
        store: PersistentScoreStore,
        projection: Optional[StoredScoreProjection] = None,
        narrative_generator: Optional[NarrativeGenerator] = None,
        config: Optional[FitScoreConfig] = None,
        clock: Optional[ClockProtocol] = None,
        policy: Optional[WeightingPolicy] = None,
        entries: Optional[DayEntryLog] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        self.config = config or FitScoreConfig()
        self._clock = clock or SystemClock()

        self._nutrition = nutrition
        self._training = training
        self._recovery = recovery
        self._projection = projection
        self._narrative_generator = narrative_generator or WeakLinkNarrativeGenerator()

        self.states = DateStateMachine(self._clock, self.config.cache.editable_window_days)
        self.cache = TwoTierScoreCache(store)
        self.aggregator = ScoreAggregator(
            policy or FixedWeightPolicy(self.config.weighting),
            self._clock,
        )
        self.diagnostics = WeakLinkDiagnostics(self.config.diagnostics)
        self.entries = entries or DayEntryLog()
        self._engine = engine

    # --------------------------------------------------------
    # DATE STATE
    # --------------------------------------------------------

    def date_state(self, score_date: date) -> DateState:
        return self.states.state_for(score_date)

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def close(self) -> None:
        """Release the projection's HTTP session and the database engine."""
        close_projection = getattr(self._projection, "close", None)
        if close_projection is not None:
            await close_projection()

        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

        logger.info("FitScore service closed")

    # --------------------------------------------------------
    # COMPUTE
    # --------------------------------------------------------

    async def compute(self, score_date: date) -> CompositeScore:
        """
        Run the full pipeline for an Editable date.

        Returns:
            The CompositeScore computed by this call. If a newer
            compute for the same date was issued meanwhile, the
            result is returned but not cached.

        Raises:
            DateReadOnly: If the date is frozen history
            InvalidDate: If the date is in the future
            InputUnavailable: If no meal is logged
            ProviderFailure: If any pillar provider failed
        """
        # --------------------------------------------------
        # Step 1-2: Guards, before any provider call
        # --------------------------------------------------
        self.states.require(score_date, "compute")
        if self.entries.meal_count(score_date) < 1:
            raise InputUnavailable(score_date)

        # --------------------------------------------------
        # Step 3: Ticket captured at issuance
        # --------------------------------------------------
        ticket = self.cache.begin_request(CacheNamespace.SCORE, score_date)
        logger.info(f"Computing FitScore for {score_date.isoformat()} (request #{ticket.sequence})")

        # --------------------------------------------------
        # Step 4-5: Providers, all-or-nothing
        # --------------------------------------------------
        names = ("nutrition", "training", "recovery")
        results = await asyncio.gather(
            self._nutrition.get(score_date),
            self._training.get(score_date),
            self._recovery.get(score_date),
            return_exceptions=True,
        )

        failures: Dict[str, BaseException] = {}
        for name, result in zip(names, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                failures[name] = result
        if failures:
            error = ProviderFailure(score_date, failures)
            logger.error(error.to_log_format())
            raise error

        nutrition, training, recovery = results

        # --------------------------------------------------
        # Step 6: Aggregate
        # --------------------------------------------------
        context = ScoreContext(
            whoop=recovery.to_signals(),
            nutrition_context=nutrition.day_context,
            timing_signals=nutrition.timing_signals,
        )
        score = self.aggregator.aggregate(
            score_date,
            nutrition.to_pillar(),
            training.to_pillar(),
            recovery.to_pillar(),
            context,
        )

        # --------------------------------------------------
        # Step 7: Commit
        # --------------------------------------------------
        outcome = await self.cache.commit_score(ticket, score)
        if outcome == WriteOutcome.WRITTEN:
            # The previous narrative described the replaced score
            await self.cache.invalidate_narrative(score_date)
            logger.info(
                f"FitScore for {score_date.isoformat()}: {score.fit_score} ({score.zone.value})"
            )
        return score

    async def recalculate(self, score_date: date) -> CompositeScore:
        """Clear both cache slots for the date and recompute."""
        self.states.require(score_date, "recalculate")
        await self.cache.invalidate(score_date)
        return await self.compute(score_date)

    # --------------------------------------------------------
    # LOOKUP
    # --------------------------------------------------------

    async def get_cached_or_stored(self, score_date: date) -> ScoreLookup:
        """
        Look a date up without computing.

        Order: memory, durable store, then (ReadOnly dates only)
        the stored-score projection. A miss everywhere is EMPTY.
        Never raises.
        """
        try:
            state = self.states.state_for(score_date)
        except InvalidDate as e:
            logger.warning(e.to_log_format())
            return ScoreLookup.empty(score_date)

        try:
            score, source = await self.cache.get_score(score_date)
        except Exception as e:
            logger.warning(f"Cache lookup failed for {score_date.isoformat()}: {e}")
            score, source = None, None

        if score is not None:
            return ScoreLookup(score_date, LookupKind.FULL, score=score, source=source)

        if state == DateState.READ_ONLY and self._projection is not None:
            try:
                projection = await self._projection.get(score_date)
            except Exception as e:
                logger.warning(f"Stored-score projection failed for {score_date.isoformat()}: {e}")
                projection = None
            if projection is not None:
                return ScoreLookup(
                    score_date, LookupKind.STORED, projection=projection, source="projection"
                )

        logger.debug(f"Nothing logged for {score_date.isoformat()}")
        return ScoreLookup.empty(score_date)

    # --------------------------------------------------------
    # DIAGNOSTICS
    # --------------------------------------------------------

    def get_weak_link(
        self,
        score: CompositeScore,
        meals: Optional[Sequence[MealDetail]] = None,
        sessions: Optional[Sequence[TrainingSession]] = None,
        water_band: Optional[Union[WaterIntakeBand, str]] = None,
    ) -> WeakLinkResult:
        """Pure, synchronous, side-effect-free diagnosis."""
        ctx = build_day_context(score, meals, sessions, water_band)
        return self.diagnostics.diagnose(score, ctx)

    async def weak_link_for(self, score_date: date) -> Optional[WeakLinkResult]:
        """Diagnose a date from its cached score and the current day log."""
        score, _ = await self.cache.get_score(score_date)
        if score is None:
            return None
        return self.get_weak_link(
            score,
            self.entries.meals(score_date),
            self.entries.sessions(score_date),
            self.entries.water_band(score_date),
        )

    # --------------------------------------------------------
    # NARRATIVE
    # --------------------------------------------------------

    async def get_narrative(self, score_date: date) -> Optional[str]:
        """
        Cached coaching narrative for a date, generated on a miss.

        Returns None when the date has no full score.
        """
        self.states.require(score_date, "narrative")

        narrative, _ = await self.cache.get_narrative(score_date)
        if narrative is not None:
            return narrative

        score, _ = await self.cache.get_score(score_date)
        if score is None:
            return None

        ticket = self.cache.begin_request(CacheNamespace.NARRATIVE, score_date)
        weak_link = self.get_weak_link(
            score,
            self.entries.meals(score_date),
            self.entries.sessions(score_date),
            self.entries.water_band(score_date),
        )
        narrative = await self._narrative_generator.generate(score, weak_link)
        await self.cache.commit_narrative(ticket, narrative)
        return narrative

    async def regenerate_narrative(self, score_date: date) -> Optional[str]:
        """Replace the narrative without recomputing the score."""
        self.states.require(score_date, "narrative")
        await self.cache.invalidate_narrative(score_date)
        return await self.get_narrative(score_date)

    # --------------------------------------------------------
    # DAY LOG
    # --------------------------------------------------------

    def load_entries(
        self,
        score_date: date,
        meals: Sequence[MealDetail] = (),
        sessions: Sequence[TrainingSession] = (),
    ) -> None:
        """Seed the day log with entries already logged elsewhere."""
        for meal in meals:
            self.entries.add_meal(score_date, meal)
        for session in sessions:
            self.entries.add_session(score_date, session)

    def add_meal(self, score_date: date, meal: MealDetail) -> MealDetail:
        self.states.require(score_date, "add_meal")
        return self.entries.add_meal(score_date, meal)

    def update_meal(self, score_date: date, meal: MealDetail) -> MealDetail:
        self.states.require(score_date, "update_meal")
        return self.entries.update_meal(score_date, meal)

    def delete_meal(self, score_date: date, entry_id: str) -> None:
        self.states.require(score_date, "delete_meal")
        self.entries.delete_meal(score_date, entry_id)

    def add_session(self, score_date: date, session: TrainingSession) -> TrainingSession:
        self.states.require(score_date, "add_session")
        return self.entries.add_session(score_date, session)

    def update_session(self, score_date: date, session: TrainingSession) -> TrainingSession:
        self.states.require(score_date, "update_session")
        return self.entries.update_session(score_date, session)

    def delete_session(self, score_date: date, entry_id: str) -> None:
        self.states.require(score_date, "delete_session")
        self.entries.delete_session(score_date, entry_id)

    def set_water_band(
        self,
        score_date: date,
        band: Optional[Union[WaterIntakeBand, str]],
    ) -> None:
        self.states.require(score_date, "set_water_band")
        self.entries.set_water_band(score_date, band)

    def logged_meals(self, score_date: date) -> List[MealDetail]:
        return self.entries.meals(score_date)
