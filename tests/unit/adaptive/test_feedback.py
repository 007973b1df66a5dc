# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the feedback synthesizer."""

import pytest

from src.core.adaptive import (
    BehavioralScores,
    DifficultyLevel,
    LearningMode,
    TrendDirection,
    TrendResult,
    adaptive_parameters,
    build_recommendation,
    synthesize_feedback,
)
from src.core.adaptive.constants import (
    EncouragementLevel,
    HintType,
    PaceAdjustment,
    ScaffoldingStrategy,
    SignalLevel,
)
from src.core.adaptive.models import WeakArea


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def struggling_record(make_progress):
    """A learner on medium with low accuracy and three weak areas."""
    return make_progress(
        accuracy_pct=45,
        completed_sessions=5,
        current_difficulty=DifficultyLevel.MEDIUM,
        average_response_time_ms=4000,
        weak_areas=[
            WeakArea(concept="carrying", accuracy_pct=30),
            WeakArea(concept="place-value", accuracy_pct=25),
            WeakArea(concept="zero", accuracy_pct=20),
        ],
    )


@pytest.fixture
def strong_record(make_progress):
    """A confident learner on easy ready to move up."""
    return make_progress(
        accuracy_pct=92,
        completed_sessions=8,
        current_difficulty=DifficultyLevel.EASY,
        average_response_time_ms=12000,
    )


@pytest.fixture
def improving_trend() -> TrendResult:
    return TrendResult(
        trend=TrendDirection.IMPROVING,
        improvement_pct=40,
        recent_accuracy_pct=100,
        first_half_accuracy_pct=60,
        sample_size=10,
    )


# ============================================================================
# Baseline
# ============================================================================


class TestBuildRecommendation:
    """Tests for build_recommendation."""

    def test_new_learner_gets_conservative_default(self) -> None:
        """Test guided, easy, hinted defaults for a learner with no record."""
        recommendation = build_recommendation(None)

        assert recommendation.difficulty is DifficultyLevel.EASY
        assert recommendation.hints_enabled is True
        assert recommendation.guided_mode is True
        assert recommendation.focus_areas == []
        assert recommendation.encouragement_level is EncouragementLevel.HIGH

    def test_struggling_learner(self, struggling_record) -> None:
        recommendation = build_recommendation(struggling_record)

        assert recommendation.difficulty is DifficultyLevel.EASY
        assert recommendation.hints_enabled is True
        assert recommendation.guided_mode is True
        assert recommendation.focus_areas == ["carrying", "place-value", "zero"]
        assert recommendation.encouragement_level is EncouragementLevel.HIGH

    def test_strong_learner(self, strong_record) -> None:
        recommendation = build_recommendation(strong_record)

        assert recommendation.difficulty is DifficultyLevel.MEDIUM
        assert recommendation.hints_enabled is False
        assert recommendation.guided_mode is False
        assert recommendation.encouragement_level is EncouragementLevel.STANDARD


class TestAdaptiveParameters:
    """Tests for adaptive_parameters."""

    def test_new_learner(self) -> None:
        params = adaptive_parameters(None)

        assert params.difficulty is DifficultyLevel.EASY
        assert params.question_count == 5
        assert params.time_limit_ms is None
        assert params.hints_available == 3

    def test_timed_when_learner_is_quick(self, struggling_record) -> None:
        """Test a time limit of twice the average response time."""
        params = adaptive_parameters(struggling_record)

        assert params.time_limit_ms == 8000
        assert params.weak_areas_to_focus == ["carrying", "place-value"]
        assert params.visual_aids_enabled is True

    def test_untimed_when_learner_is_slow(self, strong_record) -> None:
        params = adaptive_parameters(strong_record)

        assert params.time_limit_ms is None
        assert params.question_count == 10
        assert params.hints_available == 1
        assert params.visual_aids_enabled is False


# ============================================================================
# Synthesis
# ============================================================================


class TestSynthesizeFeedback:
    """Tests for synthesize_feedback."""

    def test_no_data_anywhere_is_complete_and_conservative(self) -> None:
        """Test that missing inputs still produce a full recommendation."""
        feedback = synthesize_feedback(
            None,
            TrendResult.insufficient_data(),
            BehavioralScores.no_data(),
        )

        assert feedback.difficulty is DifficultyLevel.EASY
        assert feedback.guided_mode is True
        assert feedback.performance_trend is TrendDirection.INSUFFICIENT_DATA
        assert feedback.hints_available == 3
        assert feedback.question_count == 5
        assert feedback.data_status.insufficient == ["progress", "trend", "behavior"]
        assert feedback.data_status.degraded == []
        assert feedback.data_status.complete is False

    def test_confident_improving_learner_speeds_up(
        self, strong_record, improving_trend
    ) -> None:
        behavior = BehavioralScores(
            engagement=0.8,
            hesitation=0.1,
            confidence=0.9,
            preferred_learning_mode=LearningMode.AUDITORY,
            event_count=40,
        )

        feedback = synthesize_feedback(strong_record, improving_trend, behavior)

        assert feedback.difficulty is DifficultyLevel.MEDIUM
        assert feedback.pace_adjustment is PaceAdjustment.FASTER
        assert feedback.engagement_level is SignalLevel.HIGH
        assert feedback.confidence_level is SignalLevel.HIGH
        assert feedback.recommended_hint_type is HintType.TEXT_HINT
        assert feedback.needs_visual_support is False
        assert feedback.data_status.complete is True

    def test_hesitant_learner_slows_down(self, struggling_record, improving_trend) -> None:
        behavior = BehavioralScores(
            engagement=0.3,
            hesitation=0.8,
            confidence=0.2,
            preferred_learning_mode=LearningMode.MULTIMODAL,
            needs_support=True,
            recommended_scaffolding=[ScaffoldingStrategy.STEP_BY_STEP_GUIDANCE],
            event_count=12,
        )

        feedback = synthesize_feedback(struggling_record, improving_trend, behavior)

        assert feedback.pace_adjustment is PaceAdjustment.SLOWER
        assert feedback.needs_encouragement is True
        assert feedback.recommended_hint_type is HintType.STEP_BY_STEP
        assert feedback.engagement_level is SignalLevel.LOW
        assert feedback.recommended_scaffolding == [ScaffoldingStrategy.STEP_BY_STEP_GUIDANCE]

    def test_visual_learner_gets_diagrams(self, struggling_record, improving_trend) -> None:
        behavior = BehavioralScores(
            hesitation=0.9,
            preferred_learning_mode=LearningMode.VISUAL,
            event_count=5,
        )

        feedback = synthesize_feedback(struggling_record, improving_trend, behavior)

        assert feedback.recommended_hint_type is HintType.VISUAL_DIAGRAM
        assert feedback.needs_visual_support is True

    def test_degraded_inputs_are_not_reported_as_insufficient(self) -> None:
        """Test that a timed-out branch shows up only as degraded."""
        feedback = synthesize_feedback(
            None,
            TrendResult.insufficient_data(),
            BehavioralScores.no_data(),
            degraded=["progress", "trend"],
        )

        assert feedback.data_status.degraded == ["progress", "trend"]
        assert feedback.data_status.insufficient == ["behavior"]

    def test_explicit_baseline_is_used(self, strong_record) -> None:
        """Test that a precomputed baseline is not recomputed."""
        baseline = build_recommendation(None)

        feedback = synthesize_feedback(
            strong_record,
            TrendResult.insufficient_data(),
            BehavioralScores.no_data(),
            baseline=baseline,
        )

        assert feedback.difficulty is DifficultyLevel.EASY
        assert feedback.guided_mode is True
        # hint count still follows the record
        assert feedback.hints_available == 1
