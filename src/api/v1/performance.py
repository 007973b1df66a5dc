# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Answer log API endpoints.

Logged answers feed the trend, mastery and comprehensive feedback
endpoints under /adaptive.

- POST /log - Store one answered question
- GET /session/{user_id}/{module_name}/{session_id} - Session summary and logs
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.api.dependencies import AdaptiveService
from src.core.adaptive import DifficultyLevel, PerformanceLogEntry
from src.core.adaptive.models import SessionSummary
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request Models
# ============================================================================


class PerformanceLogRequest(BaseModel):
    """One answered question as sent by the learning client.

    A missing session id starts a new session; a missing timestamp means
    the answer was given now.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    module_name: str
    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    question_type: str
    is_correct: bool
    response_time_ms: float = Field(
        ge=0,
        validation_alias=AliasChoices("response_time_ms", "responseTimeMs", "responseTime"),
    )
    difficulty_level: DifficultyLevel
    hints_used: int = Field(default=0, ge=0)
    attempts_count: int = Field(default=1, ge=1)
    concept_tags: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)

    def to_entry(self) -> PerformanceLogEntry:
        return PerformanceLogEntry(**self.model_dump())


# ============================================================================
# Response Models
# ============================================================================


class SessionPerformanceResponse(BaseModel):
    """A session's summary with its answer logs in time order."""

    summary: SessionSummary = Field(description="Accuracy and timing for the session")
    logs: list[PerformanceLogEntry] = Field(description="Answer logs, oldest first")


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/log",
    response_model=PerformanceLogEntry,
    status_code=status.HTTP_201_CREATED,
    summary="Log an answered question",
)
async def log_performance(
    request: PerformanceLogRequest,
    service: AdaptiveService,
) -> PerformanceLogEntry:
    return await service.record_performance(request.to_entry())


@router.get(
    "/session/{user_id}/{module_name}/{session_id}",
    response_model=SessionPerformanceResponse,
    summary="Get session performance",
)
async def get_session_performance(
    user_id: str,
    module_name: str,
    session_id: str,
    service: AdaptiveService,
) -> SessionPerformanceResponse:
    """Summarize one session's answers.

    Raises:
        HTTPException 404: If the session has no logged answers.
    """
    summary, logs = await service.session_performance(user_id, module_name, session_id)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found",
        )
    return SessionPerformanceResponse(summary=summary, logs=logs)
