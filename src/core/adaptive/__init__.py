# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive Feedback Engine.

Stateless computations that turn interaction telemetry and answer logs
into learner signals and recommendations:
- aggregator: Engagement metrics for a session
- behavior: Engagement, hesitation and confidence scores
- trend: Windowed performance trend
- mastery: Mastery tiers and concept mastery
- difficulty: Single-step difficulty ratchet
- feedback: Synthesized recommendation
- nudge: Real-time nudges for an in-progress question
- progress: Progress record updates and insights

Every function is deterministic given its inputs and never raises for
"no data"; it returns a documented sentinel instead.
"""

from src.core.adaptive.aggregator import compute_engagement_metrics
from src.core.adaptive.behavior import (
    analyze_interaction_patterns,
    compute_behavioral_scores,
    recommend_scaffolding,
)
from src.core.adaptive.constants import (
    DifficultyLevel,
    EventType,
    LearningMode,
    MasteryLevel,
    ScaffoldingStrategy,
    TrendDirection,
)
from src.core.adaptive.difficulty import (
    DifficultyRules,
    load_difficulty_rules,
    next_difficulty,
)
from src.core.adaptive.events import EventBatch, InteractionEvent, parse_events
from src.core.adaptive.feedback import (
    adaptive_parameters,
    build_recommendation,
    synthesize_feedback,
)
from src.core.adaptive.mastery import (
    ConceptMastery,
    accuracy_percent,
    assess_concept_mastery,
    mastery_for,
)
from src.core.adaptive.models import (
    AdaptiveFeedback,
    AdaptiveParameters,
    BehavioralScores,
    EngagementMetrics,
    NudgeFlags,
    PerformanceLogEntry,
    ProgressRecord,
    Recommendation,
    SessionResult,
    TrendResult,
)
from src.core.adaptive.nudge import realtime_nudge
from src.core.adaptive.progress import (
    apply_session_result,
    build_insights,
    summarize_session,
)
from src.core.adaptive.trend import analyze_trend

__all__ = [
    # Contracts
    "AdaptiveFeedback",
    "AdaptiveParameters",
    "BehavioralScores",
    "ConceptMastery",
    "DifficultyLevel",
    "DifficultyRules",
    "EngagementMetrics",
    "EventBatch",
    "EventType",
    "InteractionEvent",
    "LearningMode",
    "MasteryLevel",
    "NudgeFlags",
    "PerformanceLogEntry",
    "ProgressRecord",
    "Recommendation",
    "ScaffoldingStrategy",
    "SessionResult",
    "TrendDirection",
    "TrendResult",
    # Operations
    "accuracy_percent",
    "adaptive_parameters",
    "analyze_interaction_patterns",
    "analyze_trend",
    "apply_session_result",
    "assess_concept_mastery",
    "build_insights",
    "build_recommendation",
    "compute_behavioral_scores",
    "compute_engagement_metrics",
    "load_difficulty_rules",
    "mastery_for",
    "next_difficulty",
    "parse_events",
    "realtime_nudge",
    "recommend_scaffolding",
    "summarize_session",
    "synthesize_feedback",
]
