# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Interaction telemetry API endpoints.

Ingestion endpoints validate and store events; stored events then feed
the adaptive feedback endpoints. The scoring endpoints score events the
client sends in the request body and touch no store. Malformed records
are skipped and counted, never rejected as a whole batch.

- POST /events/batch - Store a batch of events
- POST /event - Store a single event
- GET /session/{user_id}/{module_name}/{session_id}/metrics - Stored session metrics
- GET /patterns/{user_id}/{module_name} - Stored interaction patterns
- POST /metrics - Engagement metrics for a session's events
- POST /behavior - Behavioral scores and interaction patterns
- POST /nudge - Real-time nudges for the in-progress question
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.api.dependencies import AdaptiveService
from src.core.adaptive import (
    BehavioralScores,
    EngagementMetrics,
    NudgeFlags,
    analyze_interaction_patterns,
    compute_behavioral_scores,
    compute_engagement_metrics,
    parse_events,
    realtime_nudge,
)
from src.core.adaptive.models import InteractionPatterns

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================


class InteractionBatchRequest(BaseModel):
    """Raw interaction events as sent by the learning client."""

    events: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Interaction event records (snake_case or camelCase keys)",
    )


# ============================================================================
# Response Models
# ============================================================================


class MetricsResponse(BaseModel):
    """Engagement metrics for the accepted events."""

    metrics: EngagementMetrics = Field(description="Aggregated engagement metrics")
    skipped: int = Field(description="Malformed records that were ignored")


class BehaviorResponse(BaseModel):
    """Behavioral analysis of the accepted events."""

    scores: BehavioralScores = Field(description="Engagement, hesitation and confidence")
    patterns: InteractionPatterns = Field(description="Coarse interaction tendencies")
    skipped: int = Field(description="Malformed records that were ignored")


class NudgeResponse(NudgeFlags):
    """Nudge flags plus the number of ignored records."""

    skipped: int = Field(default=0, description="Malformed records that were ignored")


class IngestResponse(BaseModel):
    """Outcome of storing interaction events."""

    accepted: int = Field(description="Events validated and stored")
    skipped: int = Field(default=0, description="Malformed records that were ignored")
    skipped_reasons: dict[str, int] = Field(
        default_factory=dict, description="Ignored record count per reason"
    )


# ============================================================================
# Ingestion Endpoints
# ============================================================================


@router.post(
    "/events/batch",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store a batch of interaction events",
)
async def ingest_events(
    request: InteractionBatchRequest,
    service: AdaptiveService,
) -> IngestResponse:
    """Validate and store events; malformed records are skipped.

    Raises:
        HTTPException 400: If the batch is empty.
    """
    if not request.events:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Events array is required",
        )
    batch = parse_events(request.events)
    accepted = await service.record_events(batch.events)
    return IngestResponse(
        accepted=accepted,
        skipped=batch.skipped,
        skipped_reasons=batch.skipped_reasons,
    )


@router.post(
    "/event",
    response_model=IngestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store one interaction event",
)
async def ingest_event(record: dict[str, Any], service: AdaptiveService) -> IngestResponse:
    """Store a single event.

    Raises:
        HTTPException 422: If the record is malformed.
    """
    batch = parse_events([record])
    if batch.skipped:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Malformed interaction event: {next(iter(batch.skipped_reasons))}",
        )
    accepted = await service.record_events(batch.events)
    return IngestResponse(accepted=accepted)


@router.get(
    "/session/{user_id}/{module_name}/{session_id}/metrics",
    response_model=EngagementMetrics,
    summary="Get stored session metrics",
)
async def get_session_metrics(
    user_id: str,
    module_name: str,
    session_id: str,
    service: AdaptiveService,
) -> EngagementMetrics:
    """Engagement metrics over a stored session's events.

    Raises:
        HTTPException 404: If the session has no stored events.
    """
    metrics = await service.engagement_metrics(user_id, module_name, session_id)
    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No interaction data found",
        )
    return metrics


@router.get(
    "/patterns/{user_id}/{module_name}",
    response_model=InteractionPatterns,
    summary="Get stored interaction patterns",
)
async def get_interaction_patterns(
    user_id: str,
    module_name: str,
    service: AdaptiveService,
    limit: Annotated[int, Query(ge=1, le=1000, description="Most recent events to analyze")] = 100,
) -> InteractionPatterns:
    return await service.interaction_patterns(user_id, module_name, limit=limit)


# ============================================================================
# Scoring Endpoints
# ============================================================================


@router.post("/metrics", response_model=MetricsResponse, summary="Compute engagement metrics")
async def interaction_metrics(request: InteractionBatchRequest) -> MetricsResponse:
    """Aggregate a session's interaction events.

    Raises:
        HTTPException 404: If no valid events were supplied.
    """
    batch = parse_events(request.events)
    metrics = compute_engagement_metrics(batch.events)
    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No interaction data found",
        )
    return MetricsResponse(metrics=metrics, skipped=batch.skipped)


@router.post("/behavior", response_model=BehaviorResponse, summary="Analyze behavior")
async def interaction_behavior(request: InteractionBatchRequest) -> BehaviorResponse:
    batch = parse_events(request.events)
    return BehaviorResponse(
        scores=compute_behavioral_scores(batch.events),
        patterns=analyze_interaction_patterns(batch.events),
        skipped=batch.skipped,
    )


@router.post("/nudge", response_model=NudgeResponse, summary="Get real-time nudges")
async def interaction_nudge(request: InteractionBatchRequest) -> NudgeResponse:
    """Decide nudges from the last few events of the current question."""
    batch = parse_events(request.events)
    flags = realtime_nudge(batch.events)
    return NudgeResponse(**flags.model_dump(), skipped=batch.skipped)
