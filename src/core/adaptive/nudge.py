# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Real-time nudges for an in-progress question.

A cheap short-circuit path that looks only at the last few events of
the current question. It needs no historical stores and can be called
on every client heartbeat.

Rules are applied in order and a later match overrides the action and
message of an earlier one:
1. Idle for more than 10s in total: encourage, with an audio cue
2. Any single choice hovered more than 3 times: highlight visuals
3. More than 15s since the question was displayed: offer a hint
"""

from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from src.core.adaptive.aggregator import elapsed_ms
from src.core.adaptive.constants import NudgeAction, NudgeThresholds
from src.core.adaptive.events import (
    ChoiceHoverData,
    IdleData,
    InteractionEvent,
    QuestionDisplayedData,
)
from src.core.adaptive.models import NudgeFlags
from src.utils.datetime import ensure_utc, utc_now

ENCOURAGE_MESSAGE = "Take your time! Try selecting an answer."
VISUAL_CUE_MESSAGE = "Let me highlight the important parts for you."
HINT_MESSAGE = "Would you like a hint?"


def _displayed_at(event: InteractionEvent, data: QuestionDisplayedData) -> datetime:
    return data.displayed_at or event.timestamp


def realtime_nudge(
    recent_events: Sequence[InteractionEvent],
    now: datetime | None = None,
) -> NudgeFlags:
    """Decide which nudges to show for the current question.

    Args:
        recent_events: The last few events of the in-progress question.
        now: Reference time (defaults to the current UTC time).

    Returns:
        NudgeFlags; all flags off and action CONTINUE for no events.
    """
    if not recent_events:
        return NudgeFlags()

    idle_ms = 0.0
    hover_starts: Counter[int] = Counter()
    displayed_at: datetime | None = None

    for event in recent_events:
        match event.event_data:
            case QuestionDisplayedData() as data:
                displayed_at = _displayed_at(event, data)
            case IdleData(duration_ms=duration):
                idle_ms += duration
            case ChoiceHoverData(kind="choice_hover_start", choice_index=index):
                hover_starts[index] += 1
            case _:
                pass

    flags: dict[str, object] = {}

    if idle_ms > NudgeThresholds.IDLE_ENCOURAGE_MS:
        flags.update(
            should_encourage=True,
            should_play_audio_cue=True,
            recommended_action=NudgeAction.PROMPT,
            message=ENCOURAGE_MESSAGE,
        )

    max_hovers = max(hover_starts.values(), default=0)
    if max_hovers > NudgeThresholds.HOVER_REPEAT_LIMIT:
        flags.update(
            should_highlight_visual=True,
            recommended_action=NudgeAction.VISUAL_CUE,
            message=VISUAL_CUE_MESSAGE,
        )

    if displayed_at is not None:
        reference = ensure_utc(now) if now is not None else utc_now()
        if elapsed_ms(displayed_at, reference) > NudgeThresholds.HINT_AFTER_MS:
            flags.update(
                should_provide_hint=True,
                recommended_action=NudgeAction.HINT,
                message=HINT_MESSAGE,
            )

    return NudgeFlags(**flags)
