# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Adaptive feedback API endpoints.

This module provides store-backed endpoints for a learner in a module:
- GET /recommendation/{user_id}/{module_name} - Baseline recommendation
- GET /parameters/{user_id}/{module_name} - Next session parameters
- GET /trends/{user_id}/{module_name} - Performance trend
- GET /mastery/{user_id}/{module_name}/{concept} - Concept mastery
- GET /feedback/{user_id}/{module_name} - Comprehensive feedback
- POST /progress/{user_id}/{module_name} - Record a finished session
- GET /insights/{user_id} - Strengths and weaknesses across modules

Example:
    GET /api/v1/adaptive/trends/u1/addition?days=14
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import Field

from src.api.dependencies import AdaptiveService, SessionProgressUpdater
from src.core.adaptive import (
    AdaptiveFeedback,
    AdaptiveParameters,
    ConceptMastery,
    ProgressRecord,
    Recommendation,
    SessionResult,
    TrendResult,
)
from src.core.adaptive.models import LearnerInsights
from src.domains.adaptive import InvalidSessionResultError, ProgressConflictError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Response Models
# ============================================================================


class TrendResponse(TrendResult):
    """Trend with its suggested action spelled out."""

    message: str = Field(description="Human-readable suggested action")


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/recommendation/{user_id}/{module_name}",
    response_model=Recommendation,
    summary="Get baseline recommendation",
)
async def get_recommendation(
    user_id: str,
    module_name: str,
    service: AdaptiveService,
) -> Recommendation:
    """Difficulty, hints and focus areas from stored progress."""
    return await service.recommendation(user_id, module_name)


@router.get(
    "/parameters/{user_id}/{module_name}",
    response_model=AdaptiveParameters,
    summary="Get next session parameters",
)
async def get_parameters(
    user_id: str,
    module_name: str,
    service: AdaptiveService,
) -> AdaptiveParameters:
    return await service.parameters(user_id, module_name)


@router.get(
    "/trends/{user_id}/{module_name}",
    response_model=TrendResponse,
    summary="Get performance trend",
)
async def get_trend(
    user_id: str,
    module_name: str,
    service: AdaptiveService,
    days: Annotated[int, Query(ge=1, le=365, description="Trailing window in days")] = 7,
) -> TrendResponse:
    """Compare accuracy between the halves of the trailing window.

    Fewer than five answers in the window yields an ``insufficient-data``
    trend rather than an error.
    """
    trend = await service.performance_trend(user_id, module_name, days=days)
    return TrendResponse(**trend.model_dump(), message=trend.suggested_action_message)


@router.get(
    "/mastery/{user_id}/{module_name}/{concept}",
    response_model=ConceptMastery,
    summary="Get concept mastery",
)
async def get_concept_mastery(
    user_id: str,
    module_name: str,
    concept: str,
    service: AdaptiveService,
) -> ConceptMastery:
    return await service.concept_mastery(user_id, module_name, concept)


@router.get(
    "/feedback/{user_id}/{module_name}",
    response_model=AdaptiveFeedback,
    summary="Get comprehensive feedback",
)
async def get_feedback(
    user_id: str,
    module_name: str,
    service: AdaptiveService,
    session_id: Annotated[
        str | None, Query(description="Restrict behavior scoring to one session")
    ] = None,
) -> AdaptiveFeedback:
    """Combine trend, behavior and progress into one recommendation.

    ``data_status`` lists inputs that had no data and inputs that timed
    out and fell back to defaults.

    Raises:
        HTTPException 503: If a store could not be reached.
    """
    return await service.comprehensive_feedback(user_id, module_name, session_id=session_id)


@router.post(
    "/progress/{user_id}/{module_name}",
    response_model=ProgressRecord,
    summary="Record a finished session",
)
async def record_progress(
    user_id: str,
    module_name: str,
    result: SessionResult,
    updater: SessionProgressUpdater,
) -> ProgressRecord:
    """Apply a session result to the learner's progress.

    Raises:
        HTTPException 422: If the difficulty skips a step.
        HTTPException 409: If concurrent writers kept conflicting.
    """
    try:
        return await updater.record_session(user_id, module_name, result)
    except InvalidSessionResultError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )
    except ProgressConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message,
        )


@router.get(
    "/insights/{user_id}",
    response_model=LearnerInsights,
    summary="Get learner insights",
)
async def get_insights(user_id: str, service: AdaptiveService) -> LearnerInsights:
    return await service.insights(user_id)
