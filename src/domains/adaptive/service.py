# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive Feedback Service - the async calling layer around the engine.

The engine in src.core.adaptive is pure and synchronous. This service
owns everything that touches I/O:
- Reading and appending events, answer logs and progress through the
  store protocols
- Running the three comprehensive-feedback branches concurrently with a
  per-branch timeout
- Serializing progress read-modify-write per learner and module

A branch that times out falls back to its no-data value and is reported
in ``data_status.degraded``. A store that is unreachable is never turned
into "no data": the request fails with FeedbackUnavailableError.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TypeVar

from src.core.adaptive import (
    AdaptiveFeedback,
    AdaptiveParameters,
    BehavioralScores,
    ConceptMastery,
    DifficultyRules,
    EngagementMetrics,
    InteractionEvent,
    PerformanceLogEntry,
    ProgressRecord,
    Recommendation,
    SessionResult,
    TrendResult,
    adaptive_parameters,
    analyze_interaction_patterns,
    analyze_trend,
    apply_session_result,
    assess_concept_mastery,
    build_insights,
    build_recommendation,
    compute_behavioral_scores,
    compute_engagement_metrics,
    load_difficulty_rules,
    summarize_session,
    synthesize_feedback,
)
from src.core.adaptive.models import InteractionPatterns, LearnerInsights, SessionSummary
from src.core.config import AdaptiveSettings, get_settings
from src.domains.adaptive.stores import (
    EventStore,
    PerformanceStore,
    ProgressStore,
    StoreUnavailableError,
    VersionConflictError,
)
from src.utils.datetime import days_before
from src.utils.logging import bind_context

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdaptiveServiceError(Exception):
    """Exception raised for adaptive service operations."""

    def __init__(
        self,
        message: str,
        code: str = "adaptive_error",
        original_error: Exception | None = None,
    ):
        self.message = message
        self.code = code
        self.original_error = original_error
        super().__init__(self.message)


class FeedbackUnavailableError(AdaptiveServiceError):
    """Raised when a backing store could not be read."""

    def __init__(self, sources: list[str], original_error: Exception | None = None):
        super().__init__(
            message=f"Adaptive data unavailable: {', '.join(sources)}",
            code="feedback_unavailable",
            original_error=original_error,
        )
        self.sources = sources


class InvalidSessionResultError(AdaptiveServiceError):
    """Raised when a session result cannot be applied to progress."""

    def __init__(self, reason: str, original_error: Exception | None = None):
        super().__init__(
            message=f"Invalid session result: {reason}",
            code="invalid_session_result",
            original_error=original_error,
        )


class ProgressConflictError(AdaptiveServiceError):
    """Raised when a progress write keeps losing version races."""

    def __init__(self, user_id: str, module_name: str, attempts: int):
        super().__init__(
            message=(
                f"Progress for {user_id}/{module_name} changed concurrently "
                f"{attempts} times"
            ),
            code="progress_conflict",
        )
        self.attempts = attempts


async def _read(source: Awaitable[T]) -> T:
    """Await a store call, translating unavailability for the caller."""
    try:
        return await source
    except StoreUnavailableError as e:
        raise FeedbackUnavailableError([e.source], original_error=e) from e


class AdaptiveFeedbackService:
    """Service for adaptive feedback queries.

    Handles:
    - Event and answer-log ingestion
    - Trend, behavior, mastery and engagement queries
    - Baseline recommendation and session parameters
    - Comprehensive feedback with concurrent, time-boxed store reads

    Attributes:
        _events: Interaction event store.
        _performance: Answer log store.
        _progress: Progress record store.
        _settings: Adaptive settings (timeouts, windows, limits).
        _rules: Difficulty ratchet thresholds.

    Example:
        service = AdaptiveFeedbackService(events, performance, progress)
        feedback = await service.comprehensive_feedback("u1", "addition")
    """

    def __init__(
        self,
        events: EventStore,
        performance: PerformanceStore,
        progress: ProgressStore,
        settings: AdaptiveSettings | None = None,
        rules: DifficultyRules | None = None,
    ):
        self._events = events
        self._performance = performance
        self._progress = progress
        self._settings = settings or get_settings().adaptive
        if rules is None and self._settings.rules_file is not None:
            rules = load_difficulty_rules(self._settings.rules_file)
        self._rules = rules

    @property
    def rules(self) -> DifficultyRules | None:
        return self._rules

    # =========================================================================
    # Store reads
    # =========================================================================

    async def _session_events(
        self,
        user_id: str,
        module_name: str,
        session_id: str | None = None,
        limit: int | None = None,
    ) -> list[InteractionEvent]:
        """Most recent events in chronological order."""
        events = await self._events.query(
            user_id,
            module_name,
            session_id=session_id,
            limit=limit or self._settings.event_query_limit,
            descending=True,
        )
        return sorted(events, key=lambda event: event.timestamp)

    async def _trend(
        self,
        user_id: str,
        module_name: str,
        days: int,
        now: datetime | None,
    ) -> TrendResult:
        logs = await self._performance.query(user_id, module_name, days_before(days, now))
        return analyze_trend(logs, window_days=days, now=now)

    async def _behavior(
        self,
        user_id: str,
        module_name: str,
        session_id: str | None,
    ) -> BehavioralScores:
        events = await self._session_events(user_id, module_name, session_id)
        return compute_behavioral_scores(events)

    async def _baseline(
        self,
        user_id: str,
        module_name: str,
    ) -> tuple[ProgressRecord | None, Recommendation]:
        record = await self._progress.get(user_id, module_name)
        return record, build_recommendation(record, self._rules)

    # =========================================================================
    # Ingestion
    # =========================================================================

    async def record_events(self, events: Sequence[InteractionEvent]) -> int:
        """Persist validated interaction events.

        Returns:
            Number of events stored.

        Raises:
            FeedbackUnavailableError: If the event store is unreachable.
        """
        if not events:
            return 0
        await _read(self._events.append(*events))
        logger.info(
            "Recorded %d interaction events for %d learners",
            len(events),
            len({event.user_id for event in events}),
        )
        return len(events)

    async def record_performance(self, log: PerformanceLogEntry) -> PerformanceLogEntry:
        """Persist one answer log."""
        bind_context(user_id=log.user_id, module_name=log.module_name)
        await _read(self._performance.append(log))
        logger.info(
            "Recorded answer log: session=%s correct=%s response_time_ms=%.0f",
            log.session_id,
            log.is_correct,
            log.response_time_ms,
        )
        return log

    async def session_performance(
        self,
        user_id: str,
        module_name: str,
        session_id: str,
    ) -> tuple[SessionSummary | None, list[PerformanceLogEntry]]:
        """One session's answer logs and their summary.

        The summary is None when the session has no logs.
        """
        logs = await _read(self._performance.session(user_id, module_name, session_id))
        return summarize_session(logs), logs

    # =========================================================================
    # Single-signal queries
    # =========================================================================

    async def performance_trend(
        self,
        user_id: str,
        module_name: str,
        days: int | None = None,
        now: datetime | None = None,
    ) -> TrendResult:
        """Analyze the learner's trend over a trailing window.

        Raises:
            FeedbackUnavailableError: If the performance store is unreachable.
        """
        days = days or self._settings.trend_window_days
        return await _read(self._trend(user_id, module_name, days, now))

    async def behavior(
        self,
        user_id: str,
        module_name: str,
        session_id: str | None = None,
    ) -> BehavioralScores:
        """Score the learner's recent interaction behavior."""
        return await _read(self._behavior(user_id, module_name, session_id))

    async def engagement_metrics(
        self,
        user_id: str,
        module_name: str,
        session_id: str,
    ) -> EngagementMetrics | None:
        """Aggregate one session's events; None when there are none."""
        events = await _read(self._session_events(user_id, module_name, session_id))
        return compute_engagement_metrics(events)

    async def interaction_patterns(
        self,
        user_id: str,
        module_name: str,
        limit: int | None = None,
    ) -> InteractionPatterns:
        events = await _read(self._session_events(user_id, module_name, limit=limit))
        return analyze_interaction_patterns(events)

    async def recommendation(self, user_id: str, module_name: str) -> Recommendation:
        """Baseline recommendation from stored progress."""
        _, baseline = await _read(self._baseline(user_id, module_name))
        return baseline

    async def parameters(self, user_id: str, module_name: str) -> AdaptiveParameters:
        """Session parameters for the learner's next session."""
        record = await _read(self._progress.get(user_id, module_name))
        return adaptive_parameters(record, self._rules)

    async def concept_mastery(
        self,
        user_id: str,
        module_name: str,
        concept: str,
        now: datetime | None = None,
    ) -> ConceptMastery:
        """Assess mastery of one concept from recent tagged answers."""
        since = days_before(self._settings.history_days, now)
        logs = await _read(self._performance.query(user_id, module_name, since))
        return assess_concept_mastery(logs, concept)

    async def insights(self, user_id: str) -> LearnerInsights:
        """Strengths, weaknesses and practice suggestions across modules."""
        records = await _read(self._progress.list_for_user(user_id))
        return build_insights(records)

    # =========================================================================
    # Comprehensive feedback
    # =========================================================================

    async def _branch(self, name: str, work: Awaitable[T], fallback: T) -> tuple[T, bool]:
        """Run one branch under the per-branch timeout.

        Returns:
            The branch result and whether it fell back after a timeout.
        """
        try:
            result = await asyncio.wait_for(
                work, timeout=self._settings.branch_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Feedback branch '%s' timed out after %.2fs, using fallback",
                name,
                self._settings.branch_timeout_seconds,
            )
            return fallback, True
        return result, False

    async def comprehensive_feedback(
        self,
        user_id: str,
        module_name: str,
        session_id: str | None = None,
        now: datetime | None = None,
    ) -> AdaptiveFeedback:
        """Synthesize trend, behavior and baseline into one recommendation.

        The three branches run concurrently. A slow branch never blocks
        the others; it falls back and is listed in
        ``data_status.degraded``. Cancellation of the caller propagates
        and no partial result is returned.

        Args:
            user_id: Learner identifier.
            module_name: Learning module.
            session_id: Restrict behavior scoring to one session.
            now: Reference time for the trend window.

        Returns:
            AdaptiveFeedback.

        Raises:
            FeedbackUnavailableError: If any store was unreachable.
        """
        bind_context(user_id=user_id, module_name=module_name)
        window = self._settings.trend_window_days

        results = await asyncio.gather(
            self._branch(
                "trend",
                self._trend(user_id, module_name, window, now),
                TrendResult.insufficient_data(window_days=window),
            ),
            self._branch(
                "behavior",
                self._behavior(user_id, module_name, session_id),
                BehavioralScores.no_data(),
            ),
            self._branch(
                "progress",
                self._baseline(user_id, module_name),
                (None, Recommendation()),
            ),
            return_exceptions=True,
        )

        failed: list[StoreUnavailableError] = []
        for result in results:
            if isinstance(result, StoreUnavailableError):
                failed.append(result)
            elif isinstance(result, BaseException):
                raise result
        if failed:
            sources = [error.source for error in failed]
            logger.error("Comprehensive feedback failed, stores unavailable: %s", sources)
            raise FeedbackUnavailableError(sources, original_error=failed[0])

        (trend, trend_degraded), (behavior, behavior_degraded), (baseline, baseline_degraded) = (
            results
        )
        record, recommendation = baseline
        degraded = [
            name
            for name, flag in (
                ("trend", trend_degraded),
                ("behavior", behavior_degraded),
                ("progress", baseline_degraded),
            )
            if flag
        ]

        feedback = synthesize_feedback(
            record,
            trend,
            behavior,
            baseline=recommendation,
            degraded=degraded,
            rules=self._rules,
        )
        logger.info(
            "Comprehensive feedback: difficulty=%s trend=%s insufficient=%s degraded=%s",
            feedback.difficulty.value,
            feedback.performance_trend.value,
            feedback.data_status.insufficient,
            feedback.data_status.degraded,
        )
        return feedback


class ProgressUpdater:
    """Serialized progress writes.

    Writes for the same (user_id, module_name) are queued on a per-key
    lock, so two sessions finishing together both land. Writers in other
    processes are caught by the store's version check and retried.

    Example:
        updater = ProgressUpdater(progress_store)
        record = await updater.record_session("u1", "addition", result)
    """

    def __init__(self, store: ProgressStore, max_retries: int | None = None):
        if max_retries is None:
            max_retries = get_settings().adaptive.max_save_retries
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self._store = store
        self._max_retries = max_retries
        # key -> (lock, holders and waiters); dropped when the count reaches zero
        self._locks: dict[tuple[str, str], tuple[asyncio.Lock, int]] = {}

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def active_keys(self) -> int:
        """Number of (user_id, module_name) keys with a live lock."""
        return len(self._locks)

    @asynccontextmanager
    async def _key_lock(self, key: tuple[str, str]) -> AsyncIterator[None]:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    async def record_session(
        self,
        user_id: str,
        module_name: str,
        result: SessionResult,
        now: datetime | None = None,
    ) -> ProgressRecord:
        """Apply a session result and persist the new progress record.

        Raises:
            InvalidSessionResultError: If the result skips a difficulty step.
            ProgressConflictError: If every attempt lost a version race.
            FeedbackUnavailableError: If the progress store is unreachable.
        """
        async with self._key_lock((user_id, module_name)):
            for attempt in range(1, self._max_retries + 1):
                current = await _read(self._store.get(user_id, module_name))
                expected = current.version if current is not None else 0
                try:
                    updated = apply_session_result(current, result, user_id, module_name, now)
                except ValueError as e:
                    raise InvalidSessionResultError(str(e), original_error=e) from e

                try:
                    saved = await _read(self._store.save(updated, expected))
                except VersionConflictError as e:
                    logger.warning(
                        "Progress write for %s/%s conflicted (attempt %d/%d): %s",
                        user_id,
                        module_name,
                        attempt,
                        self._max_retries,
                        e,
                    )
                    continue

                logger.info(
                    "Recorded session for %s/%s: sessions=%d accuracy=%s mastery=%s",
                    user_id,
                    module_name,
                    saved.completed_sessions,
                    saved.accuracy_pct,
                    saved.mastery_level.value,
                )
                return saved

        raise ProgressConflictError(user_id, module_name, self._max_retries)
