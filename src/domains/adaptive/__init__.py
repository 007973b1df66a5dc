# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive domain - store-backed feedback queries and progress updates."""

from src.domains.adaptive.service import (
    AdaptiveFeedbackService,
    AdaptiveServiceError,
    FeedbackUnavailableError,
    InvalidSessionResultError,
    ProgressConflictError,
    ProgressUpdater,
)
from src.domains.adaptive.stores import (
    EventStore,
    InMemoryEventStore,
    InMemoryPerformanceStore,
    InMemoryProgressStore,
    PerformanceStore,
    ProgressStore,
    StoreUnavailableError,
    VersionConflictError,
)

__all__ = [
    "AdaptiveFeedbackService",
    "AdaptiveServiceError",
    "FeedbackUnavailableError",
    "InvalidSessionResultError",
    "ProgressConflictError",
    "ProgressUpdater",
    "EventStore",
    "PerformanceStore",
    "ProgressStore",
    "InMemoryEventStore",
    "InMemoryPerformanceStore",
    "InMemoryProgressStore",
    "StoreUnavailableError",
    "VersionConflictError",
]
