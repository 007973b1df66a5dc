# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Interaction event contracts.

An InteractionEvent carries a payload whose shape depends on its
event type. Payloads are modelled as a discriminated union keyed by
``kind`` (always equal to the event type), so consumers match on the
payload class instead of probing an open dictionary.

Raw client records use camelCase keys (``eventType``, ``eventData``,
``choiceIndex``, ``reactionTime``); both spellings are accepted.

Example:
    >>> batch = parse_events([
    ...     {"eventType": "idle_detected", "eventData": {"duration": 12000},
    ...      "userId": "u1", "sessionId": "s1", "moduleName": "addition",
    ...      "questionId": "q1", "timestamp": "2025-01-01T10:00:00Z"},
    ... ])
    >>> batch.skipped
    0
"""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Annotated, Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.core.adaptive.constants import EventType
from src.utils.datetime import ensure_utc, utc_from_timestamp

logger = logging.getLogger(__name__)


def _alias(name: str, *legacy: str) -> AliasChoices:
    """Accept the snake_case field name plus client spellings."""
    return AliasChoices(name, to_camel(name), *legacy)


class _Payload(BaseModel):
    """Fields every payload may carry."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    reaction_time_ms: float | None = Field(
        default=None, ge=0, validation_alias=_alias("reaction_time_ms", "reactionTime")
    )
    element_id: str | None = Field(default=None, validation_alias=_alias("element_id"))
    metadata: dict[str, Any] | None = None


class QuestionDisplayedData(_Payload):
    """A question was rendered."""

    kind: Literal["question_displayed"] = "question_displayed"
    displayed_at: datetime | None = Field(
        default=None,
        validation_alias=_alias("displayed_at", "displayed_at_ms", "displayedAtMs", "timestamp"),
    )

    @field_validator("displayed_at", mode="before")
    @classmethod
    def _lenient_display_time(cls, value: Any) -> datetime | None:
        """Accept epoch milliseconds or ISO-8601; drop anything else.

        The display time is optional, so an unreadable value falls back
        to the event timestamp instead of rejecting the event.
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, datetime):
            return ensure_utc(value)
        try:
            if isinstance(value, (int, float)):
                return utc_from_timestamp(value / 1000)
            if isinstance(value, str):
                try:
                    return utc_from_timestamp(float(value) / 1000)
                except ValueError:
                    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except (ValueError, OverflowError, OSError):
            logger.debug("Ignoring unreadable question display time: %r", value)
        return None


class PointerData(_Payload):
    """Mouse movement, hover or click."""

    kind: Literal["mouse_move", "mouse_hover", "mouse_click"]
    x: float | None = None
    y: float | None = None


class KeyData(_Payload):
    """Key press or release."""

    kind: Literal["key_down", "key_up"]
    key_code: str | None = Field(default=None, validation_alias=_alias("key_code"))


class ChoiceHoverData(_Payload):
    """Pointer entered or left an answer choice."""

    kind: Literal["choice_hover_start", "choice_hover_end"]
    choice_index: int = Field(validation_alias=_alias("choice_index"))
    hover_duration_ms: float | None = Field(
        default=None, ge=0, validation_alias=_alias("hover_duration_ms", "hoverDuration")
    )


class AnswerSelectedData(_Payload):
    """The learner committed to an answer."""

    kind: Literal["answer_selected"] = "answer_selected"
    reaction_time_ms: float = Field(
        ge=0, validation_alias=_alias("reaction_time_ms", "reactionTime")
    )
    is_correct: bool = Field(validation_alias=_alias("is_correct"))
    choice_index: int | None = Field(default=None, validation_alias=_alias("choice_index"))


class IdleData(_Payload):
    """The client detected an idle period."""

    kind: Literal["idle_detected"] = "idle_detected"
    duration_ms: float = Field(ge=0, validation_alias=_alias("duration_ms", "duration"))


class GenericData(_Payload):
    """Events whose payload carries no type-specific fields."""

    kind: Literal[
        "hint_requested",
        "visual_focus",
        "input_start",
        "input_end",
    ]


EventPayload = Annotated[
    QuestionDisplayedData
    | PointerData
    | KeyData
    | ChoiceHoverData
    | AnswerSelectedData
    | IdleData
    | GenericData,
    Field(discriminator="kind"),
]


class InteractionEvent(BaseModel):
    """A single immutable interaction event.

    Attributes:
        user_id: Learner identifier.
        session_id: Session the event belongs to.
        module_name: Learning module (e.g. "addition").
        question_id: Question on screen when the event fired.
        event_type: Closed event type.
        event_data: Payload variant matching event_type.
        timestamp: When the event happened (UTC).
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    user_id: str
    session_id: str
    module_name: str
    question_id: str
    event_type: EventType
    event_data: EventPayload
    timestamp: datetime

    @model_validator(mode="before")
    @classmethod
    def _tag_payload(cls, data: Any) -> Any:
        """Copy the event type into the payload discriminator."""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        event_type = data.get("event_type", data.get("eventType"))
        if isinstance(event_type, EventType):
            event_type = event_type.value
        key = "event_data" if "event_data" in data else "eventData"
        payload = data.get(key)
        if payload is None:
            payload = {}
        if isinstance(payload, Mapping) and event_type is not None:
            data[key] = {**payload, "kind": event_type}
        return data

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _payload_matches_type(self) -> "InteractionEvent":
        if self.event_data.kind != self.event_type.value:
            raise ValueError(
                f"payload kind '{self.event_data.kind}' does not match "
                f"event type '{self.event_type.value}'"
            )
        return self


class EventBatch(BaseModel):
    """Result of parsing raw event records.

    Attributes:
        events: Well-formed events, in input order.
        skipped: Number of malformed records that were dropped.
        skipped_reasons: Dropped record count per reason.
    """

    model_config = ConfigDict(frozen=True)

    events: list[InteractionEvent] = Field(default_factory=list)
    skipped: int = 0
    skipped_reasons: dict[str, int] = Field(default_factory=dict)


def _skip_reason(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{first.get('type', 'invalid')}:{location}" if location else first.get("type", "invalid")


def parse_events(records: Iterable[Mapping[str, Any] | InteractionEvent]) -> EventBatch:
    """Validate raw event records, skipping malformed ones.

    A record is malformed when its event type is outside the closed
    enumeration or its payload lacks a field its type requires. Such
    records are dropped and counted rather than failing the batch.

    Args:
        records: Raw mappings (or already-built events).

    Returns:
        EventBatch with valid events and the skipped count.
    """
    events: list[InteractionEvent] = []
    reasons: Counter[str] = Counter()

    for index, record in enumerate(records):
        if isinstance(record, InteractionEvent):
            events.append(record)
            continue
        try:
            events.append(InteractionEvent.model_validate(record))
        except ValidationError as e:
            reason = _skip_reason(e)
            reasons[reason] += 1
            logger.debug("Skipping malformed interaction event %d: %s", index, reason)

    skipped = sum(reasons.values())
    if skipped:
        logger.info(
            "Parsed %d interaction events, skipped %d malformed",
            len(events),
            skipped,
        )

    return EventBatch(events=events, skipped=skipped, skipped_reasons=dict(reasons))
