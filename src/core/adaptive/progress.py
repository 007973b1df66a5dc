# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Progress record updates and learner insights.

``apply_session_result`` computes the next ProgressRecord after a
session. It never mutates its input: the caller persists the returned
record (see ProgressUpdater for serialized read-modify-write). Derived
fields (accuracy, mastery tier) are recomputed in the same call that
changes the raw counters.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime

from src.core.adaptive.constants import (
    DifficultyThresholds,
    MasteryLevel,
    SignalLevel,
)
from src.core.adaptive.mastery import accuracy_percent
from src.core.adaptive.models import (
    ConceptScore,
    LearnerInsights,
    ModuleStrength,
    ModuleWeakness,
    PerformanceLogEntry,
    PracticeSuggestion,
    ProgressRecord,
    SessionResult,
    SessionSummary,
    WeakArea,
)
from src.utils.datetime import utc_now

NEW_STRENGTH_ACCURACY = 70
NEW_WEAK_AREA_ACCURACY = 30
CONCEPT_ACCURACY_STEP = 5
INSIGHT_WEAK_CONCEPTS = 3
HIGH_PRIORITY_BELOW = 40


def _update_concepts(
    strengths: list[ConceptScore],
    weak_areas: list[WeakArea],
    result: SessionResult,
) -> tuple[list[ConceptScore], list[WeakArea]]:
    strengths = [s.model_copy() for s in strengths]
    weak_areas = [w.model_copy() for w in weak_areas]
    by_strength = {s.concept: s for s in strengths}
    by_weakness = {w.concept: w for w in weak_areas}

    for outcome in result.concepts:
        if outcome.correct:
            existing = by_strength.get(outcome.name)
            if existing is not None:
                existing.accuracy_pct = min(100, existing.accuracy_pct + CONCEPT_ACCURACY_STEP)
            else:
                score = ConceptScore(concept=outcome.name, accuracy_pct=NEW_STRENGTH_ACCURACY)
                strengths.append(score)
                by_strength[outcome.name] = score
        else:
            weak = by_weakness.get(outcome.name)
            if weak is not None:
                weak.attempts += 1
                weak.accuracy_pct = max(0, weak.accuracy_pct - CONCEPT_ACCURACY_STEP)
            else:
                weak = WeakArea(
                    concept=outcome.name,
                    accuracy_pct=NEW_WEAK_AREA_ACCURACY,
                    attempts=1,
                )
                weak_areas.append(weak)
                by_weakness[outcome.name] = weak

    return strengths, weak_areas


def apply_session_result(
    record: ProgressRecord | None,
    result: SessionResult,
    user_id: str,
    module_name: str,
    now: datetime | None = None,
) -> ProgressRecord:
    """Compute the progress record after a completed session.

    Args:
        record: Current progress (None if the learner has none yet).
        result: Outcome of the session.
        user_id: Learner identifier.
        module_name: Learning module.
        now: Completion time (defaults to the current UTC time).

    Returns:
        The next ProgressRecord, with the same version as the input.

    Raises:
        ValueError: If result.difficulty is more than one step away from
            the current difficulty.
    """
    current = record or ProgressRecord(user_id=user_id, module_name=module_name)

    difficulty = current.current_difficulty
    if result.difficulty is not None:
        if abs(result.difficulty.ordinal - difficulty.ordinal) > 1:
            raise ValueError(
                f"difficulty may change by one step per session: "
                f"{difficulty.value} -> {result.difficulty.value}"
            )
        difficulty = result.difficulty

    sessions = current.completed_sessions + 1
    total = current.total_questions + result.total
    correct = current.correct_answers + result.correct
    average = (
        current.average_response_time_ms * (sessions - 1) + result.response_time_ms
    ) / sessions
    strengths, weak_areas = _update_concepts(current.strengths, current.weak_areas, result)

    return current.with_updates(
        completed_sessions=sessions,
        total_questions=total,
        correct_answers=correct,
        accuracy_pct=accuracy_percent(correct, total) if total else current.accuracy_pct,
        average_response_time_ms=average,
        current_difficulty=difficulty,
        strengths=[s.model_dump() for s in strengths],
        weak_areas=[w.model_dump() for w in weak_areas],
        total_time_spent_s=current.total_time_spent_s + result.time_spent_s,
        last_session_at=now or utc_now(),
    )


def summarize_session(logs: Sequence[PerformanceLogEntry]) -> SessionSummary | None:
    """Summarize one session's answer logs.

    Args:
        logs: Logs sharing one session id.

    Returns:
        SessionSummary, or None when there are no logs.
    """
    if not logs:
        return None

    ordered = sorted(logs, key=lambda log: log.timestamp)
    correct = sum(1 for log in ordered if log.is_correct)
    avg_response = sum(log.response_time_ms for log in ordered) / len(ordered)

    return SessionSummary(
        session_id=ordered[0].session_id,
        module_name=ordered[0].module_name,
        total_questions=len(ordered),
        correct_answers=correct,
        accuracy_pct=accuracy_percent(correct, len(ordered)),
        average_response_time_ms=round(avg_response),
        difficulty_level=ordered[0].difficulty_level,
        completed_at=ordered[-1].timestamp,
    )


def build_insights(records: Iterable[ProgressRecord]) -> LearnerInsights:
    """Collect strengths, weaknesses and practice suggestions.

    A module is a strength at proficient or mastered, and a weakness at
    beginner tier or below the difficulty decrease threshold.

    Args:
        records: Progress records for one learner.

    Returns:
        LearnerInsights across all modules.
    """
    insights = LearnerInsights()

    for record in records:
        if record.mastery_level in (MasteryLevel.PROFICIENT, MasteryLevel.MASTERED):
            insights.strengths.append(
                ModuleStrength(
                    module_name=record.module_name,
                    mastery_level=record.mastery_level,
                    accuracy_pct=record.accuracy_pct,
                )
            )

        if (
            record.mastery_level is MasteryLevel.BEGINNER
            or record.accuracy_pct < DifficultyThresholds.DECREASE_ACCURACY
        ):
            insights.weaknesses.append(
                ModuleWeakness(
                    module_name=record.module_name,
                    accuracy_pct=record.accuracy_pct,
                    weak_concepts=record.weak_areas[:INSIGHT_WEAK_CONCEPTS],
                )
            )
            insights.suggestions.append(
                PracticeSuggestion(
                    module_name=record.module_name,
                    suggestion=f"Practice {record.module_name} with guided mode",
                    priority=(
                        SignalLevel.HIGH
                        if record.accuracy_pct < HIGH_PRIORITY_BELOW
                        else SignalLevel.MEDIUM
                    ),
                )
            )

    return insights
