# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Interaction event aggregation.

Collapses an ordered session (or bounded window) of interaction events
into count- and duration-based engagement metrics in a single pass.

Events are consumed in the order given. Producers are responsible for
ordering; out-of-order events are tolerated but never re-sorted here.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from src.core.adaptive.constants import AggregationThresholds, EventType
from src.core.adaptive.events import (
    AnswerSelectedData,
    ChoiceHoverData,
    InteractionEvent,
)
from src.core.adaptive.models import EngagementMetrics, HoverPattern


def elapsed_ms(start: datetime, end: datetime) -> float:
    """Milliseconds between two timestamps (negative if out of order)."""
    return (end - start).total_seconds() * 1000


@dataclass
class _HoverAccumulator:
    """Running hover totals for one answer choice."""

    count: int = 0
    total_duration_ms: float = 0.0
    opened_at: datetime | None = None

    def to_pattern(self) -> HoverPattern:
        return HoverPattern(
            hover_count=self.count,
            average_hover_duration_ms=(
                self.total_duration_ms / self.count if self.count else 0.0
            ),
        )


def compute_engagement_metrics(
    events: Sequence[InteractionEvent],
) -> EngagementMetrics | None:
    """Summarize a session's interaction events.

    Reaction time is measured from a ``question_displayed`` event to the
    next ``answer_selected``. Hover durations are measured between a
    ``choice_hover_start`` and the matching ``choice_hover_end`` for the
    same choice; unmatched starts are dropped.

    Args:
        events: Events for one session, oldest first.

    Returns:
        EngagementMetrics, or None when there are no events.
    """
    if not events:
        return None

    mouse_movements = 0
    keyboard_interactions = 0
    idle_count = 0
    rapid = 0
    hesitant = 0
    reaction_times: list[float] = []
    hovers: dict[int, _HoverAccumulator] = {}
    question_started_at: datetime | None = None

    for event in events:
        match event.event_type:
            case EventType.MOUSE_MOVE:
                mouse_movements += 1
            case EventType.KEY_DOWN | EventType.KEY_UP:
                keyboard_interactions += 1
            case EventType.IDLE_DETECTED:
                idle_count += 1
            case EventType.QUESTION_DISPLAYED:
                question_started_at = event.timestamp
            case _:
                pass

        match event.event_data:
            case AnswerSelectedData() if question_started_at is not None:
                reaction = elapsed_ms(question_started_at, event.timestamp)
                reaction_times.append(reaction)
                if reaction < AggregationThresholds.RAPID_RESPONSE_MS:
                    rapid += 1
                if reaction > AggregationThresholds.HESITANT_RESPONSE_MS:
                    hesitant += 1
                question_started_at = None
            case ChoiceHoverData(kind="choice_hover_start", choice_index=index):
                hovers.setdefault(index, _HoverAccumulator()).opened_at = event.timestamp
            case ChoiceHoverData(kind="choice_hover_end", choice_index=index):
                acc = hovers.get(index)
                if acc is not None and acc.opened_at is not None:
                    acc.count += 1
                    acc.total_duration_ms += elapsed_ms(acc.opened_at, event.timestamp)
                    acc.opened_at = None
            case _:
                pass

    total_duration = 0.0
    if len(events) > 1:
        total_duration = elapsed_ms(events[0].timestamp, events[-1].timestamp)

    return EngagementMetrics(
        total_events=len(events),
        total_duration_ms=total_duration,
        average_reaction_time_ms=(
            sum(reaction_times) / len(reaction_times) if reaction_times else 0.0
        ),
        hover_patterns={
            f"choice_{index}": acc.to_pattern() for index, acc in hovers.items()
        },
        hesitation_count=hesitant,
        rapid_response_count=rapid,
        idle_count=idle_count,
        mouse_movement_count=mouse_movements,
        keyboard_interaction_count=keyboard_interactions,
    )
