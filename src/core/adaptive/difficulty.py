# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Difficulty state machine.

Difficulty moves along the ordered scale easy < medium < hard, at most
one step per decision. A hysteresis band keeps a learner near a single
threshold from oscillating: accuracy at or above the upper bound
ratchets up, accuracy below the lower bound ratchets down, and anything
in between holds. New learners are never escalated before completing
a minimum number of sessions.

The band can be tuned from a YAML rules file:

    difficulty:
      increase_accuracy: 85
      decrease_accuracy: 60
      min_sessions: 3
"""

import logging
from pathlib import Path
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from src.core.adaptive.constants import DifficultyLevel, DifficultyThresholds
from src.core.adaptive.models import ProgressRecord
from src.core.config.yaml_loader import YAMLLoadError, load_yaml

logger = logging.getLogger(__name__)


class DifficultyRules(BaseModel):
    """Thresholds for the difficulty ratchet."""

    model_config = ConfigDict(frozen=True)

    increase_accuracy: float = Field(
        default=DifficultyThresholds.INCREASE_ACCURACY, ge=0, le=100
    )
    decrease_accuracy: float = Field(
        default=DifficultyThresholds.DECREASE_ACCURACY, ge=0, le=100
    )
    min_sessions: int = Field(
        default=DifficultyThresholds.MIN_SESSIONS_FOR_ADJUSTMENT, ge=0
    )

    @model_validator(mode="after")
    def _band_is_ordered(self) -> Self:
        if self.decrease_accuracy > self.increase_accuracy:
            raise ValueError("decrease_accuracy must not exceed increase_accuracy")
        return self


DEFAULT_RULES = DifficultyRules()


def load_difficulty_rules(path: Path) -> DifficultyRules:
    """Load difficulty rules from the ``difficulty`` section of a YAML file.

    Args:
        path: Rules file.

    Returns:
        Parsed rules (defaults for missing keys).

    Raises:
        YAMLLoadError: If the file is missing, unreadable or invalid.
    """
    section = load_yaml(path, section="difficulty")
    try:
        rules = DifficultyRules.model_validate(section)
    except ValidationError as e:
        raise YAMLLoadError(path, f"Invalid difficulty rules: {e}") from e
    logger.info(
        "Loaded difficulty rules from %s (increase>=%s, decrease<%s, min_sessions=%s)",
        path,
        rules.increase_accuracy,
        rules.decrease_accuracy,
        rules.min_sessions,
    )
    return rules


def next_difficulty(
    record: ProgressRecord | None,
    rules: DifficultyRules | None = None,
) -> DifficultyLevel:
    """Decide the difficulty for the learner's next session.

    Args:
        record: Learner progress for the module (None for a new learner).
        rules: Ratchet thresholds (defaults to 85 / 60 / 3 sessions).

    Returns:
        The next difficulty level, at most one step from the current one.
    """
    rules = rules or DEFAULT_RULES

    if record is None or record.completed_sessions < rules.min_sessions:
        return DifficultyLevel.EASY

    current = record.current_difficulty
    if record.accuracy_pct >= rules.increase_accuracy:
        return current.step_up()
    if record.accuracy_pct < rules.decrease_accuracy:
        return current.step_down()
    return current
