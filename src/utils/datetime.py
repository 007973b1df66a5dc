# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the adaptive feedback engine.

Every timestamp the engine compares is timezone-aware UTC. Client
telemetry may arrive naive or as epoch milliseconds; these helpers
normalize both before any arithmetic happens.

Usage:
------
    from src.utils.datetime import utc_now

    # For current time
    now = utc_now()

    # For Pydantic model defaults
    timestamp: datetime = Field(default_factory=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def utc_from_timestamp(timestamp: float) -> datetime:
    """Create a timezone-aware UTC datetime from a Unix timestamp.

    Args:
        timestamp: Unix timestamp (seconds since epoch).

    Returns:
        Timezone-aware UTC datetime.

    Example:
        >>> utc_from_timestamp(1_700_000_000).year
        2023
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Naive datetimes are assumed to already be UTC; aware ones are
    converted. None passes through.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def days_before(days: int, reference: datetime | None = None) -> datetime:
    """Get the instant N days before a reference time.

    Args:
        days: Number of days to go back.
        reference: Anchor time (defaults to now).

    Returns:
        Timezone-aware UTC datetime.
    """
    anchor = ensure_utc(reference) if reference is not None else utc_now()
    return anchor - timedelta(days=days)
