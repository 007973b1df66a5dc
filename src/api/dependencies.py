# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Stores are process-wide singletons created at startup; the service is
built per request on top of them. Tests replace either through
``app.dependency_overrides``.

Example:
    @router.get("/recommendation/{user_id}/{module_name}")
    async def get_recommendation(
        user_id: str,
        module_name: str,
        service: AdaptiveService,
    ):
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends

from src.core.adaptive import DifficultyRules, load_difficulty_rules
from src.core.config import get_settings
from src.domains.adaptive import (
    AdaptiveFeedbackService,
    EventStore,
    InMemoryEventStore,
    InMemoryPerformanceStore,
    InMemoryProgressStore,
    PerformanceStore,
    ProgressStore,
    ProgressUpdater,
)

logger = logging.getLogger(__name__)

_event_store: EventStore | None = None
_performance_store: PerformanceStore | None = None
_progress_store: ProgressStore | None = None
_progress_updater: ProgressUpdater | None = None
_rules: DifficultyRules | None = None


def init_stores(
    events: EventStore | None = None,
    performance: PerformanceStore | None = None,
    progress: ProgressStore | None = None,
) -> None:
    """Install the process-wide stores (in-memory when not given).

    Difficulty rules are read from ``ADAPTIVE_RULES_FILE`` here, once,
    and shared by every service built afterwards.
    """
    global _event_store, _performance_store, _progress_store, _progress_updater, _rules

    rules_file = get_settings().adaptive.rules_file
    _rules = load_difficulty_rules(rules_file) if rules_file is not None else None

    _event_store = events or InMemoryEventStore()
    _performance_store = performance or InMemoryPerformanceStore()
    _progress_store = progress or InMemoryProgressStore()
    _progress_updater = ProgressUpdater(_progress_store)
    logger.info(
        "Adaptive stores initialized: events=%s performance=%s progress=%s",
        type(_event_store).__name__,
        type(_performance_store).__name__,
        type(_progress_store).__name__,
    )


def close_stores() -> None:
    """Release the process-wide stores."""
    global _event_store, _performance_store, _progress_store, _progress_updater, _rules

    _event_store = None
    _performance_store = None
    _progress_store = None
    _progress_updater = None
    _rules = None


def _ensure_stores() -> None:
    if _event_store is None or _performance_store is None or _progress_store is None:
        init_stores()


def get_adaptive_service() -> AdaptiveFeedbackService:
    """Build the adaptive feedback service over the installed stores."""
    _ensure_stores()
    return AdaptiveFeedbackService(
        events=_event_store,
        performance=_performance_store,
        progress=_progress_store,
        settings=get_settings().adaptive,
        rules=_rules,
    )


def get_progress_updater() -> ProgressUpdater:
    """Return the shared progress updater (one lock table per process)."""
    _ensure_stores()
    return _progress_updater


AdaptiveService = Annotated[AdaptiveFeedbackService, Depends(get_adaptive_service)]
SessionProgressUpdater = Annotated[ProgressUpdater, Depends(get_progress_updater)]
