# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Feedback synthesis.

Combines the three independent signal sources into one recommendation:
- Baseline from the progress record (difficulty, hints, guided mode, focus)
- Performance trend over recent answer logs
- Behavioral scores from interaction events

Every function returns a complete, well-typed object. Missing inputs
fall back to the most conservative stance: guided mode on, difficulty
easy, maximum hints.
"""

from src.core.adaptive.constants import (
    QUESTIONS_PER_MASTERY,
    EncouragementLevel,
    FeedbackThresholds,
    HintType,
    LearningMode,
    MasteryLevel,
    PaceAdjustment,
    SignalLevel,
    TrendDirection,
)
from src.core.adaptive.difficulty import DifficultyRules, next_difficulty
from src.core.adaptive.models import (
    AdaptiveFeedback,
    AdaptiveParameters,
    BehavioralScores,
    DataStatus,
    ProgressRecord,
    Recommendation,
    TrendResult,
)


def signal_level(score: float) -> SignalLevel:
    """Bucket a [0, 1] score: > 0.7 high, > 0.4 medium, else low."""
    if score > FeedbackThresholds.LEVEL_HIGH:
        return SignalLevel.HIGH
    if score > FeedbackThresholds.LEVEL_MEDIUM:
        return SignalLevel.MEDIUM
    return SignalLevel.LOW


def encouragement_level(accuracy_pct: float) -> EncouragementLevel:
    """More encouragement for lower accuracy."""
    if accuracy_pct < FeedbackThresholds.ENCOURAGE_HIGH_BELOW:
        return EncouragementLevel.HIGH
    if accuracy_pct < FeedbackThresholds.ENCOURAGE_MEDIUM_BELOW:
        return EncouragementLevel.MEDIUM
    return EncouragementLevel.STANDARD


def hints_available(accuracy_pct: float) -> int:
    """Hints per question: 3 below 70%, 2 below 85%, else 1."""
    if accuracy_pct < FeedbackThresholds.THREE_HINTS_BELOW:
        return 3
    if accuracy_pct < FeedbackThresholds.TWO_HINTS_BELOW:
        return 2
    return 1


def question_count(mastery: MasteryLevel) -> int:
    """Questions per session for a mastery tier."""
    return QUESTIONS_PER_MASTERY[mastery]


def recommend_hint_type(behavior: BehavioralScores) -> HintType:
    """Pick a hint style from learning mode and hesitation."""
    if behavior.preferred_learning_mode is LearningMode.VISUAL:
        return HintType.VISUAL_DIAGRAM
    if behavior.hesitation > FeedbackThresholds.STEP_BY_STEP_HESITATION:
        return HintType.STEP_BY_STEP
    return HintType.TEXT_HINT


def recommend_pace(behavior: BehavioralScores, trend: TrendResult) -> PaceAdjustment:
    """Slow down hesitant learners, speed up confident improving ones."""
    if behavior.hesitation > FeedbackThresholds.SLOWER_PACE_HESITATION:
        return PaceAdjustment.SLOWER
    if (
        trend.trend is TrendDirection.IMPROVING
        and behavior.confidence > FeedbackThresholds.FASTER_PACE_CONFIDENCE
    ):
        return PaceAdjustment.FASTER
    return PaceAdjustment.MAINTAIN


def build_recommendation(
    record: ProgressRecord | None,
    rules: DifficultyRules | None = None,
) -> Recommendation:
    """Baseline recommendation from a progress record.

    Args:
        record: Learner progress (None for a new learner).
        rules: Difficulty ratchet thresholds.

    Returns:
        Recommendation; the conservative default when record is None.
    """
    if record is None:
        return Recommendation()

    return Recommendation(
        difficulty=next_difficulty(record, rules),
        hints_enabled=record.accuracy_pct < FeedbackThresholds.HINTS_ENABLED_BELOW,
        guided_mode=record.accuracy_pct < FeedbackThresholds.GUIDED_MODE_BELOW,
        focus_areas=[
            area.concept for area in record.weak_areas[: FeedbackThresholds.FOCUS_AREAS]
        ],
        encouragement_level=encouragement_level(record.accuracy_pct),
    )


def adaptive_parameters(
    record: ProgressRecord | None,
    rules: DifficultyRules | None = None,
) -> AdaptiveParameters:
    """Question-session parameters for a learner.

    Args:
        record: Learner progress (None for a new learner).
        rules: Difficulty ratchet thresholds.

    Returns:
        AdaptiveParameters; new learners get five easy, untimed,
        fully-guided questions.
    """
    if record is None:
        return AdaptiveParameters()

    average = record.average_response_time_ms
    return AdaptiveParameters(
        difficulty=next_difficulty(record, rules),
        question_count=question_count(record.mastery_level),
        time_limit_ms=None if average > FeedbackThresholds.UNTIMED_RESPONSE_MS else average * 2,
        hints_available=hints_available(record.accuracy_pct),
        visual_aids_enabled=record.mastery_level is not MasteryLevel.MASTERED,
        guided_mode_enabled=record.accuracy_pct < FeedbackThresholds.GUIDED_MODE_BELOW,
        weak_areas_to_focus=[
            area.concept
            for area in record.weak_areas[: FeedbackThresholds.PARAMETER_FOCUS_AREAS]
        ],
    )


def synthesize_feedback(
    record: ProgressRecord | None,
    trend: TrendResult,
    behavior: BehavioralScores,
    baseline: Recommendation | None = None,
    degraded: list[str] | None = None,
    rules: DifficultyRules | None = None,
) -> AdaptiveFeedback:
    """Combine baseline, trend and behavior into one recommendation.

    Args:
        record: Learner progress (None for a new learner).
        trend: Performance trend.
        behavior: Behavioral scores.
        baseline: Precomputed baseline (derived from record if omitted).
        degraded: Inputs that fell back to defaults after a failure or timeout.
        rules: Difficulty ratchet thresholds.

    Returns:
        A complete AdaptiveFeedback.
    """
    if baseline is None:
        baseline = build_recommendation(record, rules)

    insufficient: list[str] = []
    if record is None:
        insufficient.append("progress")
    if not trend.has_data:
        insufficient.append("trend")
    if not behavior.has_data:
        insufficient.append("behavior")
    degraded = list(degraded or [])
    insufficient = [name for name in insufficient if name not in degraded]

    accuracy = record.accuracy_pct if record is not None else 0.0
    mastery = record.mastery_level if record is not None else MasteryLevel.BEGINNER

    return AdaptiveFeedback(
        **baseline.model_dump(),
        performance_trend=trend.trend,
        engagement_level=signal_level(behavior.engagement),
        confidence_level=signal_level(behavior.confidence),
        needs_encouragement=(
            behavior.hesitation > FeedbackThresholds.ENCOURAGEMENT_HESITATION
        ),
        needs_visual_support=behavior.preferred_learning_mode is LearningMode.VISUAL,
        recommended_hint_type=recommend_hint_type(behavior),
        pace_adjustment=recommend_pace(behavior, trend),
        hints_available=hints_available(accuracy),
        question_count=question_count(mastery),
        recommended_scaffolding=list(behavior.recommended_scaffolding),
        data_status=DataStatus(insufficient=insufficient, degraded=degraded),
    )
