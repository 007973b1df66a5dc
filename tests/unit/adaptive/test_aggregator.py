# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the interaction event aggregator."""

import pytest

from src.core.adaptive import EventType, compute_engagement_metrics


class TestComputeEngagementMetrics:
    """Tests for compute_engagement_metrics."""

    def test_no_events_returns_none(self) -> None:
        """Test that an empty session has no metrics rather than zeros."""
        assert compute_engagement_metrics([]) is None

    def test_counts_by_event_family(self, make_event) -> None:
        """Test mouse, keyboard and idle counters."""
        events = [
            make_event(EventType.MOUSE_MOVE, at_ms=0),
            make_event(EventType.MOUSE_MOVE, at_ms=100),
            make_event(EventType.MOUSE_CLICK, at_ms=200),
            make_event(EventType.KEY_DOWN, at_ms=300),
            make_event(EventType.KEY_UP, at_ms=350),
            make_event(EventType.IDLE_DETECTED, {"duration_ms": 5000}, at_ms=6000),
        ]

        metrics = compute_engagement_metrics(events)

        assert metrics is not None
        assert metrics.total_events == 6
        assert metrics.mouse_movement_count == 2
        assert metrics.keyboard_interaction_count == 2
        assert metrics.idle_count == 1
        assert metrics.total_duration_ms == 6000

    def test_reaction_time_from_display_to_answer(self, make_event) -> None:
        """Test rapid and hesitant answers are classified by elapsed time."""
        events = [
            make_event(EventType.QUESTION_DISPLAYED, at_ms=0, question_id="q1"),
            make_event(
                EventType.ANSWER_SELECTED,
                {"reaction_time_ms": 1500, "is_correct": True},
                at_ms=1500,
                question_id="q1",
            ),
            make_event(EventType.QUESTION_DISPLAYED, at_ms=2000, question_id="q2"),
            make_event(
                EventType.ANSWER_SELECTED,
                {"reaction_time_ms": 9500, "is_correct": False},
                at_ms=11500,
                question_id="q2",
            ),
        ]

        metrics = compute_engagement_metrics(events)

        assert metrics.rapid_response_count == 1
        assert metrics.hesitation_count == 1
        assert metrics.average_reaction_time_ms == pytest.approx(5500)

    def test_answer_without_display_is_not_timed(self, make_event) -> None:
        """Test that an answer with no preceding display adds no reaction time."""
        events = [
            make_event(
                EventType.ANSWER_SELECTED,
                {"reaction_time_ms": 1000, "is_correct": True},
                at_ms=0,
            ),
        ]

        metrics = compute_engagement_metrics(events)

        assert metrics.average_reaction_time_ms == 0
        assert metrics.rapid_response_count == 0
        assert metrics.total_duration_ms == 0

    def test_hover_patterns_pair_start_and_end(self, make_event) -> None:
        """Test hover durations are measured per choice between start and end."""
        events = [
            make_event(EventType.CHOICE_HOVER_START, {"choice_index": 0}, at_ms=0),
            make_event(EventType.CHOICE_HOVER_END, {"choice_index": 0}, at_ms=1000),
            make_event(EventType.CHOICE_HOVER_START, {"choice_index": 0}, at_ms=2000),
            make_event(EventType.CHOICE_HOVER_END, {"choice_index": 0}, at_ms=5000),
            make_event(EventType.CHOICE_HOVER_START, {"choice_index": 1}, at_ms=6000),
        ]

        metrics = compute_engagement_metrics(events)

        first = metrics.hover_patterns["choice_0"]
        assert first.hover_count == 2
        assert first.average_hover_duration_ms == pytest.approx(2000)
        # unmatched start: tracked, but no completed hover
        assert metrics.hover_patterns["choice_1"].hover_count == 0

    def test_hover_end_without_start_is_ignored(self, make_event) -> None:
        """Test that a stray hover end does not create a pattern."""
        events = [
            make_event(EventType.CHOICE_HOVER_END, {"choice_index": 3}, at_ms=0),
        ]

        metrics = compute_engagement_metrics(events)

        assert metrics.hover_patterns == {}
