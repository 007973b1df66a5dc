# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Behavioral scoring from raw interaction events.

Derives three bounded signals from an event sequence:
- Engagement: rewards both volume and variety of interaction
- Hesitation: weighted idle periods, long hovers and slow reactions
- Confidence: fast and correct answers among answer events

It also infers a preferred learning mode from input device usage and
recommends scaffolding in priority order. The scorer needs type
diversity, so it works on raw events rather than aggregated metrics.
"""

import logging
import math
from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from src.core.adaptive.aggregator import elapsed_ms
from src.core.adaptive.constants import (
    KEYBOARD_EVENTS,
    MOUSE_EVENTS,
    ActivityLevel,
    AggregationThresholds,
    BehaviorThresholds,
    InteractionMode,
    LearningMode,
    ScaffoldingStrategy,
)
from src.core.adaptive.events import (
    AnswerSelectedData,
    ChoiceHoverData,
    IdleData,
    InteractionEvent,
)
from src.core.adaptive.models import BehavioralScores, InteractionPatterns

logger = logging.getLogger(__name__)


def _unit(value: float) -> float:
    """Clamp to [0, 1], mapping NaN to 0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def engagement_score(events: Sequence[InteractionEvent]) -> float:
    """Score engagement from event variety and volume.

    Args:
        events: Interaction events.

    Returns:
        min(1, 0.5 * distinct_types / 10 + 0.5 * count / 100).
    """
    if not events:
        return 0.0
    distinct = len({event.event_type for event in events})
    variety = distinct / BehaviorThresholds.ENGAGEMENT_TYPE_NORMALIZER
    volume = len(events) / BehaviorThresholds.ENGAGEMENT_VOLUME_NORMALIZER
    return _unit(0.5 * variety + 0.5 * volume)


def _long_hover_opens(events: Sequence[InteractionEvent]) -> set[int]:
    """Positions of hover starts whose hover lasted too long.

    A start that reports its own duration is judged on it. Otherwise the
    duration is measured against the matching hover end for that choice.
    """
    long_opens: set[int] = set()
    pending: dict[int, tuple[int, datetime]] = {}

    for position, event in enumerate(events):
        match event.event_data:
            case ChoiceHoverData(kind="choice_hover_start", hover_duration_ms=float() as reported):
                if reported > BehaviorThresholds.LONG_HOVER_MS:
                    long_opens.add(position)
            case ChoiceHoverData(kind="choice_hover_start", choice_index=index):
                pending[index] = (position, event.timestamp)
            case ChoiceHoverData(kind="choice_hover_end", choice_index=index) if index in pending:
                opened_position, opened_at = pending.pop(index)
                if elapsed_ms(opened_at, event.timestamp) > BehaviorThresholds.LONG_HOVER_MS:
                    long_opens.add(opened_position)
            case _:
                pass

    return long_opens


def hesitation_score(events: Sequence[InteractionEvent]) -> float:
    """Score hesitation as weighted indicators per event.

    Each idle period weighs 2, each overly long hover start weighs 1 and
    each event reporting a reaction time above 10s weighs 1.5.

    Args:
        events: Interaction events.

    Returns:
        min(1, indicators / len(events)), 0 for no events.
    """
    if not events:
        return 0.0

    long_opens = _long_hover_opens(events)
    indicators = 0.0
    for position, event in enumerate(events):
        if isinstance(event.event_data, IdleData):
            indicators += BehaviorThresholds.IDLE_WEIGHT
        if position in long_opens:
            indicators += BehaviorThresholds.LONG_HOVER_WEIGHT
        reaction = event.event_data.reaction_time_ms
        if reaction is not None and reaction > BehaviorThresholds.SLOW_REACTION_MS:
            indicators += BehaviorThresholds.SLOW_REACTION_WEIGHT

    return _unit(indicators / len(events))


def confidence_score(events: Sequence[InteractionEvent]) -> float:
    """Score confidence from answer events.

    A fast answer (under 5s) contributes 1 and a correct answer 0.5,
    normalized by the maximum 1.5 per answer. Without answers the
    neutral prior 0.5 is returned: no data is not low confidence.

    Args:
        events: Interaction events.

    Returns:
        Confidence in [0, 1].
    """
    decisions = 0
    indicators = 0.0
    for event in events:
        match event.event_data:
            case AnswerSelectedData(reaction_time_ms=reaction, is_correct=is_correct):
                decisions += 1
                if reaction < BehaviorThresholds.FAST_DECISION_MS:
                    indicators += BehaviorThresholds.FAST_DECISION_WEIGHT
                if is_correct:
                    indicators += BehaviorThresholds.CORRECT_DECISION_WEIGHT
            case _:
                pass

    if decisions == 0:
        return BehaviorThresholds.NEUTRAL_CONFIDENCE

    max_per_decision = (
        BehaviorThresholds.FAST_DECISION_WEIGHT + BehaviorThresholds.CORRECT_DECISION_WEIGHT
    )
    return _unit(indicators / (decisions * max_per_decision))


def preferred_learning_mode(events: Sequence[InteractionEvent]) -> LearningMode:
    """Infer learning mode from mouse versus keyboard usage.

    Args:
        events: Interaction events.

    Returns:
        VISUAL if mouse use dominates by more than 1.5x, AUDITORY if
        keyboard use does, MULTIMODAL otherwise.
    """
    mouse = sum(1 for event in events if event.event_type in MOUSE_EVENTS)
    keyboard = sum(1 for event in events if event.event_type in KEYBOARD_EVENTS)
    ratio = BehaviorThresholds.MODE_DOMINANCE_RATIO

    if mouse > keyboard * ratio:
        return LearningMode.VISUAL
    if keyboard > mouse * ratio:
        return LearningMode.AUDITORY
    return LearningMode.MULTIMODAL


def recommend_scaffolding(
    hesitation: float,
    confidence: float,
) -> list[ScaffoldingStrategy]:
    """Recommend supports for a behavioral state, highest priority first.

    Args:
        hesitation: Hesitation score.
        confidence: Confidence score.

    Returns:
        Ordered scaffolding strategies.
    """
    if hesitation > BehaviorThresholds.SCAFFOLD_HIGH_HESITATION:
        return [
            ScaffoldingStrategy.STEP_BY_STEP_GUIDANCE,
            ScaffoldingStrategy.VISUAL_HINTS,
            ScaffoldingStrategy.AUDIO_ENCOURAGEMENT,
        ]
    if confidence < BehaviorThresholds.SCAFFOLD_LOW_CONFIDENCE:
        return [
            ScaffoldingStrategy.SIMPLIFIED_PROBLEMS,
            ScaffoldingStrategy.WORKED_EXAMPLES,
            ScaffoldingStrategy.FREQUENT_FEEDBACK,
        ]
    if (
        hesitation >= BehaviorThresholds.SCAFFOLD_MODERATE_HESITATION
        or confidence < BehaviorThresholds.SCAFFOLD_MODERATE_CONFIDENCE
    ):
        return [
            ScaffoldingStrategy.VISUAL_HINTS,
            ScaffoldingStrategy.OCCASIONAL_PROMPTS,
        ]
    return [ScaffoldingStrategy.MINIMAL_GUIDANCE]


def compute_behavioral_scores(events: Sequence[InteractionEvent]) -> BehavioralScores:
    """Compute behavioral scores for an event sequence.

    Args:
        events: Interaction events for a session or recent window.

    Returns:
        BehavioralScores. Empty input yields the neutral defaults
        (engagement 0, hesitation 0, confidence 0.5, no support needed).
    """
    if not events:
        return BehavioralScores.no_data()

    engagement = engagement_score(events)
    hesitation = hesitation_score(events)
    confidence = confidence_score(events)
    mode = preferred_learning_mode(events)
    needs_support = (
        hesitation > BehaviorThresholds.SUPPORT_HESITATION
        or confidence < BehaviorThresholds.SUPPORT_CONFIDENCE
    )

    logger.debug(
        "Behavioral scores: engagement=%.2f hesitation=%.2f confidence=%.2f mode=%s",
        engagement,
        hesitation,
        confidence,
        mode.value,
    )

    return BehavioralScores(
        engagement=engagement,
        hesitation=hesitation,
        confidence=confidence,
        preferred_learning_mode=mode,
        needs_support=needs_support,
        recommended_scaffolding=recommend_scaffolding(hesitation, confidence),
        event_count=len(events),
    )


def analyze_interaction_patterns(
    events: Sequence[InteractionEvent],
) -> InteractionPatterns:
    """Summarize an interaction history into coarse tendencies.

    Args:
        events: Interaction events, any order.

    Returns:
        InteractionPatterns; all levels UNKNOWN for no events.
    """
    if not events:
        return InteractionPatterns()

    type_counts = Counter(event.event_type for event in events)
    hesitant = 0
    rapid = 0
    for event in events:
        reaction = event.event_data.reaction_time_ms
        if not reaction:
            continue
        if reaction > AggregationThresholds.HESITANT_RESPONSE_MS:
            hesitant += 1
        if reaction < AggregationThresholds.RAPID_RESPONSE_MS:
            rapid += 1

    if len(events) > BehaviorThresholds.PATTERN_HIGH_VOLUME:
        engagement = ActivityLevel.HIGH
    elif len(events) > BehaviorThresholds.PATTERN_MEDIUM_VOLUME:
        engagement = ActivityLevel.MEDIUM
    else:
        engagement = ActivityLevel.LOW

    if hesitant > rapid:
        tendency = ActivityLevel.HIGH
    elif hesitant < rapid:
        tendency = ActivityLevel.LOW
    else:
        tendency = ActivityLevel.MEDIUM

    mouse = sum(type_counts[t] for t in MOUSE_EVENTS)
    keyboard = sum(type_counts[t] for t in KEYBOARD_EVENTS)
    if mouse > keyboard:
        mode = InteractionMode.MOUSE
    elif keyboard > mouse:
        mode = InteractionMode.KEYBOARD
    else:
        mode = InteractionMode.MIXED

    return InteractionPatterns(
        engagement_level=engagement,
        hesitation_tendency=tendency,
        preferred_interaction_mode=mode,
        event_type_counts=dict(type_counts),
        hesitation_count=hesitant,
        rapid_response_count=rapid,
    )
