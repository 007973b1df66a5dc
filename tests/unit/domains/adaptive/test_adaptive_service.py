# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the adaptive feedback service.

Tests the async layer around the engine:
- Single-signal queries over in-memory stores
- Comprehensive feedback fan-out, timeouts and store failures
- Cancellation propagation
- Serialized progress updates and version-conflict retries
"""

import asyncio
from datetime import timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.adaptive import (
    DifficultyLevel,
    EventType,
    MasteryLevel,
    SessionResult,
    TrendDirection,
)
from src.core.config import AdaptiveSettings
from src.domains.adaptive import (
    AdaptiveFeedbackService,
    FeedbackUnavailableError,
    InMemoryEventStore,
    InMemoryPerformanceStore,
    InMemoryProgressStore,
    InvalidSessionResultError,
    ProgressConflictError,
    ProgressUpdater,
    VersionConflictError,
)


class SlowPerformanceStore(InMemoryPerformanceStore):
    """Performance store that stalls before answering."""

    def __init__(self, delay: float, logs=()):
        super().__init__(logs)
        self.delay = delay

    async def query(self, user_id, module_name, since):
        await asyncio.sleep(self.delay)
        return await super().query(user_id, module_name, since)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def now(base_time):
    return base_time + timedelta(hours=1)


@pytest.fixture
def settings() -> AdaptiveSettings:
    return AdaptiveSettings(branch_timeout_seconds=0.5, trend_window_days=7)


@pytest.fixture
def declining_logs(make_log):
    """Five right answers followed by five wrong ones."""
    return [make_log(True, at=timedelta(minutes=i)) for i in range(5)] + [
        make_log(False, at=timedelta(minutes=10 + i)) for i in range(5)
    ]


@pytest.fixture
def stores(make_event, make_progress, declining_logs):
    """Seeded in-memory stores for learner-1 in addition."""
    events = InMemoryEventStore(
        [
            make_event(EventType.QUESTION_DISPLAYED, at_ms=0),
            make_event(EventType.MOUSE_MOVE, at_ms=500),
            make_event(
                EventType.ANSWER_SELECTED,
                {"reaction_time_ms": 1500, "is_correct": True},
                at_ms=1500,
            ),
        ]
    )
    performance = InMemoryPerformanceStore(declining_logs)
    progress = InMemoryProgressStore(
        [
            make_progress(
                accuracy_pct=90,
                completed_sessions=5,
                current_difficulty=DifficultyLevel.EASY,
            )
        ]
    )
    return events, performance, progress


@pytest.fixture
def service(stores, settings) -> AdaptiveFeedbackService:
    events, performance, progress = stores
    return AdaptiveFeedbackService(events, performance, progress, settings=settings)


# ============================================================================
# Single-signal queries
# ============================================================================


class TestQueries:
    """Tests for the single-signal service queries."""

    @pytest.mark.asyncio
    async def test_performance_trend(self, service, now):
        trend = await service.performance_trend("learner-1", "addition", now=now)

        assert trend.trend is TrendDirection.DECLINING
        assert trend.window_days == 7

    @pytest.mark.asyncio
    async def test_recommendation_and_parameters(self, service):
        recommendation = await service.recommendation("learner-1", "addition")
        parameters = await service.parameters("learner-1", "addition")

        assert recommendation.difficulty is DifficultyLevel.MEDIUM
        assert parameters.difficulty is DifficultyLevel.MEDIUM
        assert parameters.question_count == 10

    @pytest.mark.asyncio
    async def test_unknown_learner_gets_defaults(self, service):
        recommendation = await service.recommendation("learner-9", "addition")

        assert recommendation.difficulty is DifficultyLevel.EASY
        assert recommendation.guided_mode is True

    @pytest.mark.asyncio
    async def test_engagement_metrics(self, service):
        metrics = await service.engagement_metrics("learner-1", "addition", "session-1")
        missing = await service.engagement_metrics("learner-1", "addition", "session-9")

        assert metrics is not None
        assert metrics.total_events == 3
        assert missing is None

    @pytest.mark.asyncio
    async def test_behavior(self, service):
        scores = await service.behavior("learner-1", "addition")

        assert scores.event_count == 3
        assert scores.has_data is True

    @pytest.mark.asyncio
    async def test_concept_mastery(self, stores, settings, make_log, now):
        events, performance, progress = stores
        performance.add(
            *[
                make_log(True, at=timedelta(minutes=30 + i), concept_tags=["carrying"])
                for i in range(5)
            ]
        )
        service = AdaptiveFeedbackService(events, performance, progress, settings=settings)

        mastery = await service.concept_mastery("learner-1", "addition", "carrying", now=now)

        assert mastery.attempts == 5
        assert mastery.mastered is True

    @pytest.mark.asyncio
    async def test_insights(self, service):
        insights = await service.insights("learner-1")

        assert [s.module_name for s in insights.strengths] == ["addition"]

    @pytest.mark.asyncio
    async def test_unavailable_store_raises(self, stores, settings):
        events, performance, progress = stores
        progress.available = False
        service = AdaptiveFeedbackService(events, performance, progress, settings=settings)

        with pytest.raises(FeedbackUnavailableError) as exc_info:
            await service.recommendation("learner-1", "addition")

        assert exc_info.value.sources == ["progress"]
        assert exc_info.value.code == "feedback_unavailable"

    @pytest.mark.asyncio
    async def test_interaction_patterns_limit(self, stores, settings, make_event):
        events, performance, progress = stores
        events.add(*[make_event(EventType.KEY_DOWN, at_ms=2000 + i) for i in range(5)])
        service = AdaptiveFeedbackService(events, performance, progress, settings=settings)

        recent = await service.interaction_patterns("learner-1", "addition", limit=5)
        everything = await service.interaction_patterns("learner-1", "addition")

        assert sum(recent.event_type_counts.values()) == 5
        assert sum(everything.event_type_counts.values()) == 8

    def test_rules_loaded_from_settings(self, stores, tmp_path: Path):
        rules_file = tmp_path / "rules.yaml"
        rules_file.write_text("difficulty:\n  increase_accuracy: 95\n")
        events, performance, progress = stores

        service = AdaptiveFeedbackService(
            events,
            performance,
            progress,
            settings=AdaptiveSettings(rules_file=rules_file),
        )

        assert service.rules is not None
        assert service.rules.increase_accuracy == 95


# ============================================================================
# Ingestion
# ============================================================================


class TestIngestion:
    """Tests for storing events and answer logs through the service."""

    @pytest.mark.asyncio
    async def test_recorded_events_feed_metrics(self, service, make_event):
        stored = await service.record_events(
            [
                make_event(EventType.QUESTION_DISPLAYED, session_id="session-2"),
                make_event(EventType.IDLE_DETECTED, {"duration_ms": 12000},
                           at_ms=100, session_id="session-2"),
            ]
        )

        metrics = await service.engagement_metrics("learner-1", "addition", "session-2")

        assert stored == 2
        assert metrics.total_events == 2

    @pytest.mark.asyncio
    async def test_no_events_is_a_no_op(self, service):
        assert await service.record_events([]) == 0

    @pytest.mark.asyncio
    async def test_recorded_logs_change_trend(self, settings, make_log, now):
        service = AdaptiveFeedbackService(
            InMemoryEventStore(),
            InMemoryPerformanceStore(),
            InMemoryProgressStore(),
            settings=settings,
        )
        before = await service.performance_trend("learner-1", "addition", now=now)

        for i in range(10):
            await service.record_performance(make_log(i >= 5, at=timedelta(minutes=i)))
        after = await service.performance_trend("learner-1", "addition", now=now)

        assert before.trend is TrendDirection.INSUFFICIENT_DATA
        assert after.trend is TrendDirection.IMPROVING

    @pytest.mark.asyncio
    async def test_session_performance(self, service):
        summary, logs = await service.session_performance("learner-1", "addition", "session-1")
        missing, no_logs = await service.session_performance("learner-1", "addition", "nope")

        assert summary.total_questions == 10
        assert summary.correct_answers == 5
        assert summary.accuracy_pct == 50
        assert logs == sorted(logs, key=lambda log: log.timestamp)
        assert missing is None
        assert no_logs == []

    @pytest.mark.asyncio
    async def test_unavailable_event_store_on_write(self, stores, settings, make_event):
        events, performance, progress = stores
        events.available = False
        service = AdaptiveFeedbackService(events, performance, progress, settings=settings)

        with pytest.raises(FeedbackUnavailableError) as exc_info:
            await service.record_events([make_event(EventType.MOUSE_MOVE)])

        assert exc_info.value.sources == ["events"]


# ============================================================================
# Comprehensive feedback
# ============================================================================


class TestComprehensiveFeedback:
    """Tests for comprehensive_feedback."""

    @pytest.mark.asyncio
    async def test_combines_all_sources(self, service, now):
        feedback = await service.comprehensive_feedback("learner-1", "addition", now=now)

        assert feedback.difficulty is DifficultyLevel.MEDIUM
        assert feedback.performance_trend is TrendDirection.DECLINING
        assert feedback.data_status.complete is True
        assert feedback.hints_available == 1

    @pytest.mark.asyncio
    async def test_new_learner_is_conservative(self, settings):
        service = AdaptiveFeedbackService(
            InMemoryEventStore(),
            InMemoryPerformanceStore(),
            InMemoryProgressStore(),
            settings=settings,
        )

        feedback = await service.comprehensive_feedback("learner-1", "addition")

        assert feedback.difficulty is DifficultyLevel.EASY
        assert feedback.guided_mode is True
        assert feedback.data_status.insufficient == ["progress", "trend", "behavior"]
        assert feedback.data_status.degraded == []

    @pytest.mark.asyncio
    async def test_slow_branch_falls_back(self, stores, declining_logs, now):
        """Test that a timed-out trend is degraded while other branches land."""
        events, _, progress = stores
        service = AdaptiveFeedbackService(
            events,
            SlowPerformanceStore(delay=1.0, logs=declining_logs),
            progress,
            settings=AdaptiveSettings(branch_timeout_seconds=0.05),
        )

        feedback = await service.comprehensive_feedback("learner-1", "addition", now=now)

        assert feedback.performance_trend is TrendDirection.INSUFFICIENT_DATA
        assert feedback.data_status.degraded == ["trend"]
        assert "trend" not in feedback.data_status.insufficient
        assert feedback.difficulty is DifficultyLevel.MEDIUM

    @pytest.mark.asyncio
    async def test_unavailable_stores_are_not_no_data(self, stores, settings):
        """Test that unreachable stores fail the request with their names."""
        events, performance, progress = stores
        events.available = False
        performance.available = False
        service = AdaptiveFeedbackService(events, performance, progress, settings=settings)

        with pytest.raises(FeedbackUnavailableError) as exc_info:
            await service.comprehensive_feedback("learner-1", "addition")

        assert sorted(exc_info.value.sources) == ["events", "performance"]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, stores):
        events, _, progress = stores
        service = AdaptiveFeedbackService(
            events,
            SlowPerformanceStore(delay=10.0),
            progress,
            settings=AdaptiveSettings(branch_timeout_seconds=30),
        )

        task = asyncio.create_task(service.comprehensive_feedback("learner-1", "addition"))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


# ============================================================================
# Progress updates
# ============================================================================


class TestProgressUpdater:
    """Tests for ProgressUpdater."""

    @pytest.mark.asyncio
    async def test_records_first_session(self, base_time):
        store = InMemoryProgressStore()
        updater = ProgressUpdater(store, max_retries=3)

        record = await updater.record_session(
            "learner-1", "addition", SessionResult(correct=4, total=5), now=base_time
        )

        assert record.version == 1
        assert record.accuracy_pct == 80
        assert record.mastery_level is MasteryLevel.PROFICIENT
        assert await store.get("learner-1", "addition") == record

    @pytest.mark.asyncio
    async def test_concurrent_sessions_all_land(self):
        """Test that simultaneous completions are serialized, not lost."""
        store = InMemoryProgressStore()
        updater = ProgressUpdater(store, max_retries=3)

        await asyncio.gather(
            *[
                updater.record_session(
                    "learner-1", "addition", SessionResult(correct=1, total=2)
                )
                for _ in range(5)
            ]
        )

        record = await store.get("learner-1", "addition")
        assert record.completed_sessions == 5
        assert record.total_questions == 10
        assert record.correct_answers == 5
        assert record.version == 5

    @pytest.mark.asyncio
    async def test_conflict_is_retried(self, make_progress):
        saved = make_progress(accuracy_pct=100, completed_sessions=1, version=2)
        store = MagicMock()
        store.get = AsyncMock(return_value=None)
        store.save = AsyncMock(
            side_effect=[VersionConflictError("learner-1", "addition", 0, 1), saved]
        )
        updater = ProgressUpdater(store, max_retries=3)

        record = await updater.record_session(
            "learner-1", "addition", SessionResult(correct=1, total=1)
        )

        assert record == saved
        assert store.save.await_count == 2

    @pytest.mark.asyncio
    async def test_conflict_retries_exhausted(self):
        store = MagicMock()
        store.get = AsyncMock(return_value=None)
        store.save = AsyncMock(side_effect=VersionConflictError("learner-1", "addition", 0, 1))
        updater = ProgressUpdater(store, max_retries=2)

        with pytest.raises(ProgressConflictError) as exc_info:
            await updater.record_session(
                "learner-1", "addition", SessionResult(correct=1, total=1)
            )

        assert exc_info.value.attempts == 2
        assert exc_info.value.code == "progress_conflict"
        assert store.save.await_count == 2

    @pytest.mark.asyncio
    async def test_difficulty_jump_is_invalid(self, make_progress):
        original = make_progress(accuracy_pct=50, current_difficulty=DifficultyLevel.EASY)
        store = InMemoryProgressStore([original])
        updater = ProgressUpdater(store, max_retries=3)

        with pytest.raises(InvalidSessionResultError):
            await updater.record_session(
                "learner-1",
                "addition",
                SessionResult(correct=1, total=1, difficulty=DifficultyLevel.HARD),
            )

        assert await store.get("learner-1", "addition") == original

    @pytest.mark.asyncio
    async def test_lock_table_is_released(self):
        """Test that per-key locks do not accumulate across learners."""
        updater = ProgressUpdater(InMemoryProgressStore(), max_retries=3)

        await asyncio.gather(
            *[
                updater.record_session(
                    f"learner-{i % 20}", "addition", SessionResult(correct=1, total=1)
                )
                for i in range(60)
            ]
        )

        assert updater.active_keys == 0

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(self):
        store = InMemoryProgressStore()
        store.available = False
        updater = ProgressUpdater(store, max_retries=3)

        with pytest.raises(FeedbackUnavailableError):
            await updater.record_session(
                "learner-1", "addition", SessionResult(correct=1, total=1)
            )

        assert updater.active_keys == 0

    @pytest.mark.asyncio
    async def test_explicit_single_attempt_is_respected(self):
        store = MagicMock()
        store.get = AsyncMock(return_value=None)
        store.save = AsyncMock(side_effect=VersionConflictError("learner-1", "addition", 0, 1))
        updater = ProgressUpdater(store, max_retries=1)

        with pytest.raises(ProgressConflictError):
            await updater.record_session(
                "learner-1", "addition", SessionResult(correct=1, total=1)
            )

        assert store.save.await_count == 1

    def test_retry_count_defaults_to_settings(self):
        assert ProgressUpdater(InMemoryProgressStore()).max_retries == 3

    def test_zero_retries_is_rejected(self):
        with pytest.raises(ValueError, match="at least 1"):
            ProgressUpdater(InMemoryProgressStore(), max_retries=0)

    @pytest.mark.asyncio
    async def test_unavailable_store(self):
        store = InMemoryProgressStore()
        store.available = False
        updater = ProgressUpdater(store, max_retries=3)

        with pytest.raises(FeedbackUnavailableError) as exc_info:
            await updater.record_session(
                "learner-1", "addition", SessionResult(correct=1, total=1)
            )

        assert exc_info.value.sources == ["progress"]
