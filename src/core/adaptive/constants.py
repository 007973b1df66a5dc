# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Constants for the Adaptive Feedback Engine.

This module defines the closed enumerations and thresholds used by
the event aggregator, behavioral scorer, trend analyzer, difficulty
state machine and feedback synthesizer.
"""

from enum import Enum


class EventType(str, Enum):
    """Interaction event types emitted by the learning client."""

    QUESTION_DISPLAYED = "question_displayed"
    MOUSE_MOVE = "mouse_move"
    MOUSE_HOVER = "mouse_hover"
    MOUSE_CLICK = "mouse_click"
    KEY_DOWN = "key_down"
    KEY_UP = "key_up"
    CHOICE_HOVER_START = "choice_hover_start"
    CHOICE_HOVER_END = "choice_hover_end"
    ANSWER_SELECTED = "answer_selected"
    HINT_REQUESTED = "hint_requested"
    VISUAL_FOCUS = "visual_focus"
    IDLE_DETECTED = "idle_detected"
    INPUT_START = "input_start"
    INPUT_END = "input_end"


MOUSE_EVENTS = frozenset({
    EventType.MOUSE_MOVE,
    EventType.MOUSE_HOVER,
    EventType.MOUSE_CLICK,
})

KEYBOARD_EVENTS = frozenset({
    EventType.KEY_DOWN,
    EventType.KEY_UP,
})


class DifficultyLevel(str, Enum):
    """Question difficulty levels (ordered easy < medium < hard)."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def ordinal(self) -> int:
        """Position of the level on the difficulty scale."""
        return _DIFFICULTY_ORDER.index(self)

    def step_up(self) -> "DifficultyLevel":
        """Return the next harder level, saturating at HARD."""
        return _DIFFICULTY_ORDER[min(self.ordinal + 1, len(_DIFFICULTY_ORDER) - 1)]

    def step_down(self) -> "DifficultyLevel":
        """Return the next easier level, saturating at EASY."""
        return _DIFFICULTY_ORDER[max(self.ordinal - 1, 0)]


_DIFFICULTY_ORDER: tuple[DifficultyLevel, ...] = (
    DifficultyLevel.EASY,
    DifficultyLevel.MEDIUM,
    DifficultyLevel.HARD,
)


class MasteryLevel(str, Enum):
    """Mastery tiers derived from cumulative accuracy."""

    BEGINNER = "beginner"  # < 50%
    DEVELOPING = "developing"  # 50 - 74%
    PROFICIENT = "proficient"  # 75 - 89%
    MASTERED = "mastered"  # >= 90%


class TrendDirection(str, Enum):
    """Direction of recent performance."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    INSUFFICIENT_DATA = "insufficient-data"


class SuggestedAction(str, Enum):
    """Action suggested by the trend analyzer."""

    REDUCE_DIFFICULTY = "reduce_difficulty"
    INCREASE_DIFFICULTY = "increase_difficulty"
    CONTINUE = "continue"


SUGGESTED_ACTION_MESSAGES = {
    SuggestedAction.REDUCE_DIFFICULTY: "Reduce difficulty and enable guided mode",
    SuggestedAction.INCREASE_DIFFICULTY: "Consider increasing difficulty level",
    SuggestedAction.CONTINUE: "Continue with current difficulty",
}


class LearningMode(str, Enum):
    """Preferred learning mode inferred from input device usage."""

    VISUAL = "visual"
    AUDITORY = "auditory"
    MULTIMODAL = "multimodal"


class SignalLevel(str, Enum):
    """Bucketed level for a [0, 1] behavioral score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EncouragementLevel(str, Enum):
    """How much encouragement the learner should receive."""

    HIGH = "high"
    MEDIUM = "medium"
    STANDARD = "standard"


class ScaffoldingStrategy(str, Enum):
    """Pedagogical supports, listed in recommendation order."""

    STEP_BY_STEP_GUIDANCE = "step-by-step-guidance"
    VISUAL_HINTS = "visual-hints"
    AUDIO_ENCOURAGEMENT = "audio-encouragement"
    SIMPLIFIED_PROBLEMS = "simplified-problems"
    WORKED_EXAMPLES = "worked-examples"
    FREQUENT_FEEDBACK = "frequent-feedback"
    OCCASIONAL_PROMPTS = "occasional-prompts"
    MINIMAL_GUIDANCE = "minimal-guidance"


class HintType(str, Enum):
    """Hint presentation style."""

    VISUAL_DIAGRAM = "visual-diagram"
    STEP_BY_STEP = "step-by-step"
    TEXT_HINT = "text-hint"


class PaceAdjustment(str, Enum):
    """Session pacing change."""

    SLOWER = "slower"
    MAINTAIN = "maintain"
    FASTER = "faster"


class NudgeAction(str, Enum):
    """Action chosen by the real-time nudge."""

    CONTINUE = "continue"
    PROMPT = "prompt"
    VISUAL_CUE = "visual_cue"
    HINT = "hint"


class InteractionMode(str, Enum):
    """Dominant input device in an interaction history."""

    MOUSE = "mouse"
    KEYBOARD = "keyboard"
    MIXED = "mixed"


class ActivityLevel(str, Enum):
    """Coarse bucket used by interaction pattern analysis."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


# =============================================================================
# Thresholds
# =============================================================================

class AggregationThresholds:
    """Reaction-time classification used by the event aggregator."""

    RAPID_RESPONSE_MS = 2000
    HESITANT_RESPONSE_MS = 8000
    DEFAULT_EVENT_WINDOW = 500


class BehaviorThresholds:
    """Weights and cut-offs for the behavioral scorer."""

    ENGAGEMENT_TYPE_NORMALIZER = 10
    ENGAGEMENT_VOLUME_NORMALIZER = 100

    IDLE_WEIGHT = 2.0
    LONG_HOVER_WEIGHT = 1.0
    SLOW_REACTION_WEIGHT = 1.5
    LONG_HOVER_MS = 3000
    SLOW_REACTION_MS = 10000

    FAST_DECISION_MS = 5000
    FAST_DECISION_WEIGHT = 1.0
    CORRECT_DECISION_WEIGHT = 0.5
    NEUTRAL_CONFIDENCE = 0.5

    MODE_DOMINANCE_RATIO = 1.5

    SUPPORT_HESITATION = 0.6
    SUPPORT_CONFIDENCE = 0.4

    SCAFFOLD_HIGH_HESITATION = 0.7
    SCAFFOLD_LOW_CONFIDENCE = 0.3
    SCAFFOLD_MODERATE_HESITATION = 0.5
    SCAFFOLD_MODERATE_CONFIDENCE = 0.5

    PATTERN_HIGH_VOLUME = 200
    PATTERN_MEDIUM_VOLUME = 100


class TrendThresholds:
    """Windowed trend detection parameters."""

    DEFAULT_WINDOW_DAYS = 7
    MIN_ENTRIES = 5
    IMPROVING_DELTA = 10
    DECLINING_DELTA = -10
    LOW_RECENT_ACCURACY = 50
    HIGH_RECENT_ACCURACY = 85


class MasteryThresholds:
    """Accuracy cut-offs (percent) for mastery tiers and concept mastery."""

    DEVELOPING = 50
    PROFICIENT = 75
    MASTERED = 90

    CONCEPT_WINDOW = 20
    CONCEPT_MIN_ATTEMPTS = 3
    CONCEPT_MASTERED_ACCURACY = 85
    CONCEPT_MASTERED_ATTEMPTS = 5
    CONCEPT_MEDIUM_CONFIDENCE = 70


class DifficultyThresholds:
    """Default hysteresis band for the difficulty ratchet."""

    INCREASE_ACCURACY = 85
    DECREASE_ACCURACY = 60
    MIN_SESSIONS_FOR_ADJUSTMENT = 3


class FeedbackThresholds:
    """Cut-offs for the feedback synthesizer."""

    LEVEL_HIGH = 0.7
    LEVEL_MEDIUM = 0.4

    ENCOURAGEMENT_HESITATION = 0.7
    STEP_BY_STEP_HESITATION = 0.6
    SLOWER_PACE_HESITATION = 0.7
    FASTER_PACE_CONFIDENCE = 0.7

    HINTS_ENABLED_BELOW = 70
    GUIDED_MODE_BELOW = 60
    THREE_HINTS_BELOW = 70
    TWO_HINTS_BELOW = 85

    ENCOURAGE_HIGH_BELOW = 50
    ENCOURAGE_MEDIUM_BELOW = 75

    FOCUS_AREAS = 3
    PARAMETER_FOCUS_AREAS = 2
    UNTIMED_RESPONSE_MS = 10000


class NudgeThresholds:
    """Real-time nudge triggers for an in-progress question."""

    IDLE_ENCOURAGE_MS = 10000
    HOVER_REPEAT_LIMIT = 3
    HINT_AFTER_MS = 15000


QUESTIONS_PER_MASTERY = {
    MasteryLevel.BEGINNER: 5,
    MasteryLevel.DEVELOPING: 7,
    MasteryLevel.PROFICIENT: 10,
    MasteryLevel.MASTERED: 10,
}
