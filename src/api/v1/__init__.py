# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    adaptive: Store-backed recommendations, trends, mastery and progress.
    interactions: Event ingestion, stored-event queries and scoring of
        client-supplied interaction events.
    performance: Answer log ingestion and session summaries.
"""

from fastapi import APIRouter

from src.api.v1 import adaptive, interactions, performance

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(adaptive.router, prefix="/adaptive", tags=["Adaptive"])
router.include_router(interactions.router, prefix="/interactions", tags=["Interactions"])
router.include_router(performance.router, prefix="/performance", tags=["Performance"])

__all__ = ["router"]
