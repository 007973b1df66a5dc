# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mastery classification.

Mastery is a pure function of cumulative accuracy. ProgressRecord
stamps it on every construction, so it is never stored independently
of the accuracy it was derived from.

This module also assesses mastery of a single concept from the most
recent concept-tagged answer logs.
"""

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from src.core.adaptive.constants import MasteryLevel, MasteryThresholds, SignalLevel

if TYPE_CHECKING:
    from src.core.adaptive.models import PerformanceLogEntry


def accuracy_percent(correct: int, total: int) -> int:
    """Percentage of correct answers, rounded half up.

    Args:
        correct: Number of correct answers.
        total: Number of answers.

    Returns:
        Integer percentage 0-100 (0 when total is 0).
    """
    if total <= 0:
        return 0
    return math.floor(correct / total * 100 + 0.5)


def mastery_for(accuracy_pct: float) -> MasteryLevel:
    """Map a cumulative accuracy percentage to a mastery tier.

    Args:
        accuracy_pct: Accuracy 0-100.

    Returns:
        MASTERED >= 90, PROFICIENT >= 75, DEVELOPING >= 50, else BEGINNER.
    """
    if accuracy_pct >= MasteryThresholds.MASTERED:
        return MasteryLevel.MASTERED
    if accuracy_pct >= MasteryThresholds.PROFICIENT:
        return MasteryLevel.PROFICIENT
    if accuracy_pct >= MasteryThresholds.DEVELOPING:
        return MasteryLevel.DEVELOPING
    return MasteryLevel.BEGINNER


class ConceptMastery(BaseModel):
    """Mastery assessment for one concept.

    Attributes:
        concept: Concept tag assessed.
        mastered: Whether the concept counts as mastered.
        confidence: Confidence in the assessment.
        attempts: Number of tagged answers considered.
        accuracy_pct: Accuracy over those answers (None when too few).
        average_response_time_ms: Mean response time (None when too few).
    """

    model_config = ConfigDict(frozen=True)

    concept: str
    mastered: bool = False
    confidence: SignalLevel = SignalLevel.LOW
    attempts: int = Field(default=0, ge=0)
    accuracy_pct: int | None = None
    average_response_time_ms: float | None = None

    @property
    def has_sufficient_data(self) -> bool:
        """Whether enough attempts existed for a real assessment."""
        return self.accuracy_pct is not None


def assess_concept_mastery(
    logs: Sequence["PerformanceLogEntry"],
    concept: str,
) -> ConceptMastery:
    """Assess whether a learner has mastered a concept.

    Only the most recent tagged answers are considered. With fewer than
    the minimum attempts, a low-confidence sentinel is returned instead
    of an accuracy figure.

    Args:
        logs: Answer logs for one learner and module, any order.
        concept: Concept tag to assess.

    Returns:
        ConceptMastery for the concept.
    """
    tagged = [log for log in logs if concept in log.concept_tags]
    tagged.sort(key=lambda log: log.timestamp, reverse=True)
    recent = tagged[: MasteryThresholds.CONCEPT_WINDOW]

    if len(recent) < MasteryThresholds.CONCEPT_MIN_ATTEMPTS:
        return ConceptMastery(concept=concept, attempts=len(recent))

    correct = sum(1 for log in recent if log.is_correct)
    accuracy = accuracy_percent(correct, len(recent))
    avg_response = sum(log.response_time_ms for log in recent) / len(recent)

    if accuracy >= MasteryThresholds.CONCEPT_MASTERED_ACCURACY:
        confidence = SignalLevel.HIGH
    elif accuracy >= MasteryThresholds.CONCEPT_MEDIUM_CONFIDENCE:
        confidence = SignalLevel.MEDIUM
    else:
        confidence = SignalLevel.LOW

    return ConceptMastery(
        concept=concept,
        mastered=(
            accuracy >= MasteryThresholds.CONCEPT_MASTERED_ACCURACY
            and len(recent) >= MasteryThresholds.CONCEPT_MASTERED_ATTEMPTS
        ),
        confidence=confidence,
        attempts=len(recent),
        accuracy_pct=accuracy,
        average_response_time_ms=avg_response,
    )
