# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data contracts for the Adaptive Feedback Engine.

Input records (PerformanceLogEntry, ProgressRecord) are read from the
caller's stores. Everything else is a derived value object produced
fresh per call and never persisted by the engine.

ProgressRecord keeps its mastery tier in step with its accuracy: the
tier is recomputed by a validator whenever a record is built, and
``with_updates`` is the only supported way to derive a changed copy.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.core.adaptive.constants import (
    ActivityLevel,
    DifficultyLevel,
    EncouragementLevel,
    EventType,
    HintType,
    InteractionMode,
    LearningMode,
    MasteryLevel,
    NudgeAction,
    PaceAdjustment,
    ScaffoldingStrategy,
    SignalLevel,
    SuggestedAction,
    SUGGESTED_ACTION_MESSAGES,
    TrendDirection,
)
from src.core.adaptive.mastery import mastery_for
from src.utils.datetime import ensure_utc


# ============================================================================
# Stored records
# ============================================================================


class PerformanceLogEntry(BaseModel):
    """One answered question, as logged by the learning client."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    module_name: str
    session_id: str
    question_type: str
    is_correct: bool
    response_time_ms: float = Field(ge=0)
    difficulty_level: DifficultyLevel
    hints_used: int = Field(default=0, ge=0)
    attempts_count: int = Field(default=1, ge=1)
    concept_tags: list[str] = Field(default_factory=list)
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ConceptScore(BaseModel):
    """Accuracy estimate for a concept the learner is strong in."""

    concept: str
    accuracy_pct: float = Field(ge=0, le=100)


class WeakArea(ConceptScore):
    """Concept the learner is struggling with."""

    attempts: int = Field(default=1, ge=0)


class ProgressRecord(BaseModel):
    """Per learner and module progress snapshot.

    The calling persistence layer owns this record. The engine only
    computes next values from it.

    Attributes:
        user_id: Learner identifier.
        module_name: Learning module.
        accuracy_pct: Cumulative accuracy 0-100.
        mastery_level: Tier derived from accuracy_pct (always recomputed).
        completed_sessions: Finished sessions in this module.
        total_questions: Questions answered.
        correct_answers: Questions answered correctly.
        current_difficulty: Difficulty the learner is currently on.
        strengths: Strong concepts in insertion order.
        weak_areas: Weak concepts, most pressing first.
        average_response_time_ms: Running mean of per-session response time.
        total_time_spent_s: Accumulated time on task.
        last_session_at: When the latest session finished.
        version: Optimistic-concurrency counter maintained by stores.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    module_name: str
    accuracy_pct: float = Field(default=0, ge=0, le=100)
    mastery_level: MasteryLevel = MasteryLevel.BEGINNER
    completed_sessions: int = Field(default=0, ge=0)
    total_questions: int = Field(default=0, ge=0)
    correct_answers: int = Field(default=0, ge=0)
    current_difficulty: DifficultyLevel = DifficultyLevel.EASY
    strengths: list[ConceptScore] = Field(default_factory=list)
    weak_areas: list[WeakArea] = Field(default_factory=list)
    average_response_time_ms: float = Field(default=0, ge=0)
    total_time_spent_s: float = Field(default=0, ge=0)
    last_session_at: datetime | None = None
    version: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _stamp_mastery(self) -> "ProgressRecord":
        # Frozen model: write through object.__setattr__.
        object.__setattr__(self, "mastery_level", mastery_for(self.accuracy_pct))
        return self

    def with_updates(self, **changes: Any) -> "ProgressRecord":
        """Return a validated copy with changes applied.

        Unlike ``model_copy(update=...)`` this re-runs validation, so
        the mastery tier follows the new accuracy.
        """
        return ProgressRecord.model_validate({**self.model_dump(), **changes})


# ============================================================================
# Derived value objects
# ============================================================================


class HoverPattern(BaseModel):
    """Closed hover cycles over one answer choice."""

    model_config = ConfigDict(frozen=True)

    hover_count: int = 0
    average_hover_duration_ms: float = 0.0


class EngagementMetrics(BaseModel):
    """Count and duration summary of a session's interaction events."""

    model_config = ConfigDict(frozen=True)

    total_events: int
    total_duration_ms: float = 0.0
    average_reaction_time_ms: float = 0.0
    hover_patterns: dict[str, HoverPattern] = Field(default_factory=dict)
    hesitation_count: int = 0
    rapid_response_count: int = 0
    idle_count: int = 0
    mouse_movement_count: int = 0
    keyboard_interaction_count: int = 0


class BehavioralScores(BaseModel):
    """Behavioral signals derived from raw interaction events.

    Attributes:
        engagement: Volume and variety of interaction (0-1).
        hesitation: Indecision signal (0-1).
        confidence: Decisiveness and correctness of answers (0-1).
        preferred_learning_mode: Mode inferred from input devices.
        needs_support: Whether the learner needs extra support.
        recommended_scaffolding: Supports in priority order.
        event_count: Number of events scored.
    """

    model_config = ConfigDict(frozen=True)

    engagement: float = Field(default=0.0, ge=0.0, le=1.0)
    hesitation: float = Field(default=0.0, ge=0.0, le=1.0)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    preferred_learning_mode: LearningMode = LearningMode.VISUAL
    needs_support: bool = False
    recommended_scaffolding: list[ScaffoldingStrategy] = Field(
        default_factory=lambda: [ScaffoldingStrategy.MINIMAL_GUIDANCE]
    )
    event_count: int = 0

    @classmethod
    def no_data(cls) -> "BehavioralScores":
        """Neutral scores used when there are no events."""
        return cls()

    @property
    def has_data(self) -> bool:
        """Whether any events were scored."""
        return self.event_count > 0


class InteractionPatterns(BaseModel):
    """Coarse interaction-history summary."""

    model_config = ConfigDict(frozen=True)

    engagement_level: ActivityLevel = ActivityLevel.UNKNOWN
    hesitation_tendency: ActivityLevel = ActivityLevel.UNKNOWN
    preferred_interaction_mode: InteractionMode | None = None
    event_type_counts: dict[EventType, int] = Field(default_factory=dict)
    hesitation_count: int = 0
    rapid_response_count: int = 0


class TrendResult(BaseModel):
    """Windowed performance trend.

    Attributes:
        trend: Direction, or INSUFFICIENT_DATA with fewer than 5 answers.
        improvement_pct: Second-half minus first-half accuracy (None when insufficient).
        recent_accuracy_pct: Second-half accuracy (None when insufficient).
        first_half_accuracy_pct: First-half accuracy (None when insufficient).
        sample_size: Answers inside the window.
        window_days: Trailing window length.
        suggested_action: What to do about it.
    """

    model_config = ConfigDict(frozen=True)

    trend: TrendDirection
    improvement_pct: int | None = None
    recent_accuracy_pct: int | None = None
    first_half_accuracy_pct: int | None = None
    sample_size: int = 0
    window_days: int = 7
    suggested_action: SuggestedAction = SuggestedAction.CONTINUE

    @classmethod
    def insufficient_data(cls, sample_size: int = 0, window_days: int = 7) -> "TrendResult":
        """Low-confidence sentinel for too few answers."""
        return cls(
            trend=TrendDirection.INSUFFICIENT_DATA,
            sample_size=sample_size,
            window_days=window_days,
        )

    @property
    def suggested_action_message(self) -> str:
        """Human-readable suggested action."""
        return SUGGESTED_ACTION_MESSAGES[self.suggested_action]

    @property
    def has_data(self) -> bool:
        """Whether the trend is backed by enough answers."""
        return self.trend is not TrendDirection.INSUFFICIENT_DATA


class Recommendation(BaseModel):
    """Baseline recommendation derived from the progress record."""

    model_config = ConfigDict(frozen=True)

    difficulty: DifficultyLevel = DifficultyLevel.EASY
    hints_enabled: bool = True
    guided_mode: bool = True
    focus_areas: list[str] = Field(default_factory=list)
    encouragement_level: EncouragementLevel = EncouragementLevel.HIGH


class AdaptiveParameters(BaseModel):
    """Parameters for the next question session."""

    model_config = ConfigDict(frozen=True)

    difficulty: DifficultyLevel = DifficultyLevel.EASY
    question_count: int = 5
    time_limit_ms: float | None = None
    hints_available: int = 3
    visual_aids_enabled: bool = True
    guided_mode_enabled: bool = True
    weak_areas_to_focus: list[str] = Field(default_factory=list)


class DataStatus(BaseModel):
    """Which feedback inputs had no data or fell back after a timeout."""

    model_config = ConfigDict(frozen=True)

    insufficient: list[str] = Field(default_factory=list)
    degraded: list[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        """Whether every input contributed real data."""
        return not self.insufficient and not self.degraded


class AdaptiveFeedback(Recommendation):
    """Synthesized recommendation combining all signal sources."""

    performance_trend: TrendDirection = TrendDirection.INSUFFICIENT_DATA
    engagement_level: SignalLevel = SignalLevel.LOW
    confidence_level: SignalLevel = SignalLevel.MEDIUM
    needs_encouragement: bool = False
    needs_visual_support: bool = False
    recommended_hint_type: HintType = HintType.TEXT_HINT
    pace_adjustment: PaceAdjustment = PaceAdjustment.MAINTAIN
    hints_available: int = 3
    question_count: int = 5
    recommended_scaffolding: list[ScaffoldingStrategy] = Field(default_factory=list)
    data_status: DataStatus = Field(default_factory=DataStatus)


class NudgeFlags(BaseModel):
    """Low-latency nudges for an in-progress question."""

    model_config = ConfigDict(frozen=True)

    should_provide_hint: bool = False
    should_simplify: bool = False
    should_encourage: bool = False
    should_highlight_visual: bool = False
    should_play_audio_cue: bool = False
    recommended_action: NudgeAction = NudgeAction.CONTINUE
    message: str | None = None


# ============================================================================
# Session progress
# ============================================================================


class ConceptOutcome(BaseModel):
    """Whether a concept was answered correctly in a session."""

    name: str
    correct: bool


class SessionResult(BaseModel):
    """Outcome of one completed session, used to advance progress."""

    correct: int = Field(ge=0)
    total: int = Field(ge=0)
    response_time_ms: float = Field(default=0, ge=0)
    difficulty: DifficultyLevel | None = None
    concepts: list[ConceptOutcome] = Field(default_factory=list)
    time_spent_s: float = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _correct_within_total(self) -> "SessionResult":
        if self.correct > self.total:
            raise ValueError("correct answers cannot exceed total questions")
        return self


class SessionSummary(BaseModel):
    """Aggregate of one session's answer logs."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    module_name: str
    total_questions: int
    correct_answers: int
    accuracy_pct: int
    average_response_time_ms: int
    difficulty_level: DifficultyLevel
    completed_at: datetime


class ModuleStrength(BaseModel):
    """Module where the learner is proficient or better."""

    module_name: str
    mastery_level: MasteryLevel
    accuracy_pct: float


class ModuleWeakness(BaseModel):
    """Module where the learner needs practice."""

    module_name: str
    accuracy_pct: float
    weak_concepts: list[WeakArea] = Field(default_factory=list)


class PracticeSuggestion(BaseModel):
    """Suggested follow-up practice for a weak module."""

    module_name: str
    suggestion: str
    priority: SignalLevel


class LearnerInsights(BaseModel):
    """Strengths and weaknesses across all of a learner's modules."""

    strengths: list[ModuleStrength] = Field(default_factory=list)
    weaknesses: list[ModuleWeakness] = Field(default_factory=list)
    suggestions: list[PracticeSuggestion] = Field(default_factory=list)
