# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Store interfaces for the adaptive feedback service.

The engine never talks to a database. The service reads events, answer
logs and progress records through these async protocols, so any
backend (document store, SQL, HTTP) can be plugged in. The in-memory
implementations back the test suite, local development and batch jobs.

A store that cannot be reached raises StoreUnavailableError. That is
never the same thing as "no data": an empty result means the learner
has no history, an exception means we do not know.
"""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
from typing import Protocol

from src.core.adaptive import InteractionEvent, PerformanceLogEntry, ProgressRecord
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)

_Key = tuple[str, str]


class StoreUnavailableError(Exception):
    """Raised when a backing store cannot be reached."""

    def __init__(self, source: str, reason: str = "unavailable"):
        self.source = source
        self.reason = reason
        super().__init__(f"{source} store {reason}")


class VersionConflictError(Exception):
    """Raised when a progress record changed since it was read."""

    def __init__(self, user_id: str, module_name: str, expected: int, actual: int):
        self.user_id = user_id
        self.module_name = module_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Progress for {user_id}/{module_name} is at version {actual}, "
            f"expected {expected}"
        )


# =============================================================================
# Protocols
# =============================================================================


class EventStore(Protocol):
    """Access to interaction telemetry."""

    async def append(self, *events: InteractionEvent) -> None:
        ...

    async def query(
        self,
        user_id: str,
        module_name: str,
        session_id: str | None = None,
        limit: int = 500,
        descending: bool = True,
    ) -> list[InteractionEvent]:
        """Return up to ``limit`` events, newest first unless ``descending`` is False."""
        ...


class PerformanceStore(Protocol):
    """Access to answer logs."""

    async def append(self, *logs: PerformanceLogEntry) -> None:
        ...

    async def query(
        self,
        user_id: str,
        module_name: str,
        since: datetime,
    ) -> list[PerformanceLogEntry]:
        """Return logs at or after ``since`` in ascending time order."""
        ...

    async def session(
        self,
        user_id: str,
        module_name: str,
        session_id: str,
    ) -> list[PerformanceLogEntry]:
        """Return one session's logs in ascending time order."""
        ...


class ProgressStore(Protocol):
    """Read/write access to per-module progress records."""

    async def get(self, user_id: str, module_name: str) -> ProgressRecord | None:
        ...

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        ...

    async def save(self, record: ProgressRecord, expected_version: int) -> ProgressRecord:
        """Persist ``record`` if the stored version still equals ``expected_version``.

        Returns:
            The stored record with its version incremented.

        Raises:
            VersionConflictError: If another writer saved first.
        """
        ...


# =============================================================================
# In-memory implementations
# =============================================================================


class _InMemoryStore:
    """Shared availability switch for the in-memory stores."""

    source = "memory"

    def __init__(self) -> None:
        self.available = True

    def _check_available(self) -> None:
        if not self.available:
            raise StoreUnavailableError(self.source)


class InMemoryEventStore(_InMemoryStore):
    """Interaction events kept in insertion order per learner and module."""

    source = "events"

    def __init__(self, events: Iterable[InteractionEvent] = ()) -> None:
        super().__init__()
        self._events: dict[_Key, list[InteractionEvent]] = defaultdict(list)
        self.add(*events)

    def add(self, *events: InteractionEvent) -> None:
        for event in events:
            self._events[(event.user_id, event.module_name)].append(event)

    async def append(self, *events: InteractionEvent) -> None:
        self._check_available()
        self.add(*events)
        logger.debug("Stored %d interaction events", len(events))

    async def query(
        self,
        user_id: str,
        module_name: str,
        session_id: str | None = None,
        limit: int = 500,
        descending: bool = True,
    ) -> list[InteractionEvent]:
        self._check_available()
        events = [
            event
            for event in self._events.get((user_id, module_name), [])
            if session_id is None or event.session_id == session_id
        ]
        events.sort(key=lambda event: event.timestamp, reverse=descending)
        return events[:limit]


class InMemoryPerformanceStore(_InMemoryStore):
    """Answer logs kept per learner and module."""

    source = "performance"

    def __init__(self, logs: Iterable[PerformanceLogEntry] = ()) -> None:
        super().__init__()
        self._logs: dict[_Key, list[PerformanceLogEntry]] = defaultdict(list)
        self.add(*logs)

    def add(self, *logs: PerformanceLogEntry) -> None:
        for log in logs:
            self._logs[(log.user_id, log.module_name)].append(log)

    async def append(self, *logs: PerformanceLogEntry) -> None:
        self._check_available()
        self.add(*logs)
        logger.debug("Stored %d answer logs", len(logs))

    async def query(
        self,
        user_id: str,
        module_name: str,
        since: datetime,
    ) -> list[PerformanceLogEntry]:
        self._check_available()
        since = ensure_utc(since)
        return sorted(
            (log for log in self._logs.get((user_id, module_name), []) if log.timestamp >= since),
            key=lambda log: log.timestamp,
        )

    async def session(
        self,
        user_id: str,
        module_name: str,
        session_id: str,
    ) -> list[PerformanceLogEntry]:
        self._check_available()
        return sorted(
            (
                log
                for log in self._logs.get((user_id, module_name), [])
                if log.session_id == session_id
            ),
            key=lambda log: log.timestamp,
        )


class InMemoryProgressStore(_InMemoryStore):
    """Progress records with optimistic version checks."""

    source = "progress"

    def __init__(self, records: Iterable[ProgressRecord] = ()) -> None:
        super().__init__()
        self._records: dict[_Key, ProgressRecord] = {
            (record.user_id, record.module_name): record for record in records
        }
        self._lock = asyncio.Lock()

    async def get(self, user_id: str, module_name: str) -> ProgressRecord | None:
        self._check_available()
        return self._records.get((user_id, module_name))

    async def list_for_user(self, user_id: str) -> list[ProgressRecord]:
        self._check_available()
        return [
            record for (owner, _), record in self._records.items() if owner == user_id
        ]

    async def save(self, record: ProgressRecord, expected_version: int) -> ProgressRecord:
        self._check_available()
        key = (record.user_id, record.module_name)
        async with self._lock:
            current = self._records.get(key)
            actual = current.version if current is not None else 0
            if actual != expected_version:
                raise VersionConflictError(
                    record.user_id, record.module_name, expected_version, actual
                )
            stored = record.with_updates(version=expected_version + 1)
            self._records[key] = stored
        logger.debug(
            "Saved progress for %s/%s at version %d",
            record.user_id,
            record.module_name,
            stored.version,
        )
        return stored
