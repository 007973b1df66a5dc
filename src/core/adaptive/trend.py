# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Performance trend analysis.

Compares accuracy in the first and second half of a trailing window of
answer logs to classify recent performance as improving, stable or
declining. The only clock input is the explicit ``now`` argument, so
the same log slice and ``now`` always give the same result.
"""

from collections.abc import Sequence
from datetime import datetime

from src.core.adaptive.constants import (
    SuggestedAction,
    TrendDirection,
    TrendThresholds,
)
from src.core.adaptive.mastery import accuracy_percent
from src.core.adaptive.models import PerformanceLogEntry, TrendResult
from src.utils.datetime import days_before


def _accuracy(logs: Sequence[PerformanceLogEntry]) -> int:
    return accuracy_percent(sum(1 for log in logs if log.is_correct), len(logs))


def classify_trend(improvement_pct: int) -> TrendDirection:
    """Classify an accuracy delta.

    Args:
        improvement_pct: Second-half minus first-half accuracy.

    Returns:
        IMPROVING above +10, DECLINING below -10, else STABLE.
    """
    if improvement_pct > TrendThresholds.IMPROVING_DELTA:
        return TrendDirection.IMPROVING
    if improvement_pct < TrendThresholds.DECLINING_DELTA:
        return TrendDirection.DECLINING
    return TrendDirection.STABLE


def suggest_action(trend: TrendDirection, recent_accuracy_pct: int) -> SuggestedAction:
    """Suggest a difficulty action for a trend.

    Args:
        trend: Classified trend.
        recent_accuracy_pct: Second-half accuracy.

    Returns:
        The suggested action.
    """
    if (
        trend is TrendDirection.DECLINING
        or recent_accuracy_pct < TrendThresholds.LOW_RECENT_ACCURACY
    ):
        return SuggestedAction.REDUCE_DIFFICULTY
    if (
        trend is TrendDirection.IMPROVING
        and recent_accuracy_pct > TrendThresholds.HIGH_RECENT_ACCURACY
    ):
        return SuggestedAction.INCREASE_DIFFICULTY
    return SuggestedAction.CONTINUE


def analyze_trend(
    logs: Sequence[PerformanceLogEntry],
    window_days: int = TrendThresholds.DEFAULT_WINDOW_DAYS,
    now: datetime | None = None,
) -> TrendResult:
    """Analyze the performance trend over a trailing window.

    Logs older than ``now - window_days`` are ignored. The remaining
    logs are ordered by timestamp (stable for ties), split at ``n // 2``
    and the accuracy of each half compared.

    Args:
        logs: Answer logs for one learner and module.
        window_days: Trailing window length in days.
        now: Reference time (defaults to the current UTC time).

    Returns:
        TrendResult, or the insufficient-data sentinel for fewer than
        five logs in the window.
    """
    since = days_before(window_days, now)
    window = sorted(
        (log for log in logs if log.timestamp >= since),
        key=lambda log: log.timestamp,
    )

    if len(window) < TrendThresholds.MIN_ENTRIES:
        return TrendResult.insufficient_data(
            sample_size=len(window), window_days=window_days
        )

    midpoint = len(window) // 2
    first_half = _accuracy(window[:midpoint])
    second_half = _accuracy(window[midpoint:])
    improvement = second_half - first_half
    trend = classify_trend(improvement)

    return TrendResult(
        trend=trend,
        improvement_pct=improvement,
        recent_accuracy_pct=second_half,
        first_half_accuracy_pct=first_half,
        sample_size=len(window),
        window_days=window_days,
        suggested_action=suggest_action(trend, second_half),
    )
