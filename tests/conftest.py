# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (engine functions, service, stores)
- Integration tests (FastAPI routes)
"""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from src.core.adaptive import (
    DifficultyLevel,
    EventType,
    InteractionEvent,
    PerformanceLogEntry,
    ProgressRecord,
)
from src.core.config import clear_settings_cache

BASE_TIME = datetime(2025, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "test",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "ADAPTIVE_BRANCH_TIMEOUT_SECONDS": "0.5",
        "ADAPTIVE_TREND_WINDOW_DAYS": "7",
    }


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Drop cached settings around every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def base_time() -> datetime:
    """Fixed reference time for deterministic windows."""
    return BASE_TIME


@pytest.fixture
def make_event() -> Callable[..., InteractionEvent]:
    """Factory for interaction events offset from BASE_TIME."""

    def _make(
        event_type: EventType,
        data: dict[str, Any] | None = None,
        at_ms: float = 0,
        user_id: str = "learner-1",
        module_name: str = "addition",
        session_id: str = "session-1",
        question_id: str = "q1",
    ) -> InteractionEvent:
        return InteractionEvent.model_validate(
            {
                "user_id": user_id,
                "session_id": session_id,
                "module_name": module_name,
                "question_id": question_id,
                "event_type": event_type,
                "event_data": data or {},
                "timestamp": BASE_TIME + timedelta(milliseconds=at_ms),
            }
        )

    return _make


@pytest.fixture
def make_log() -> Callable[..., PerformanceLogEntry]:
    """Factory for answer logs offset from BASE_TIME."""

    def _make(
        is_correct: bool,
        at: timedelta = timedelta(0),
        concept_tags: list[str] | None = None,
        response_time_ms: float = 3000,
        user_id: str = "learner-1",
        module_name: str = "addition",
        session_id: str = "session-1",
        difficulty: DifficultyLevel = DifficultyLevel.EASY,
    ) -> PerformanceLogEntry:
        return PerformanceLogEntry(
            user_id=user_id,
            module_name=module_name,
            session_id=session_id,
            question_type="multiple_choice",
            is_correct=is_correct,
            response_time_ms=response_time_ms,
            difficulty_level=difficulty,
            concept_tags=concept_tags or [],
            timestamp=BASE_TIME + at,
        )

    return _make


@pytest.fixture
def make_progress() -> Callable[..., ProgressRecord]:
    """Factory for progress records."""

    def _make(
        accuracy_pct: float = 0,
        completed_sessions: int = 0,
        current_difficulty: DifficultyLevel = DifficultyLevel.EASY,
        user_id: str = "learner-1",
        module_name: str = "addition",
        **extra: Any,
    ) -> ProgressRecord:
        return ProgressRecord(
            user_id=user_id,
            module_name=module_name,
            accuracy_pct=accuracy_pct,
            completed_sessions=completed_sessions,
            current_difficulty=current_difficulty,
            **extra,
        )

    return _make
