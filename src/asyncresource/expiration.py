"""Freshness predicate for cached copies."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current time as an aware UTC :class:`~datetime.datetime`."""
    return datetime.now(timezone.utc)


def has_expired(
    timestamp: Optional[datetime],
    max_age: Optional[timedelta],
    now: Optional[datetime] = None,
) -> bool:
    """Return whether a copy last modified at *timestamp* is older than *max_age*.

    * No *timestamp* (nothing cached) -- always expired.
    * A *timestamp* but no *max_age* -- never expires.
    * Otherwise expired when ``now - timestamp > max_age``. An age exactly
      equal to *max_age* is still fresh.

    Naive datetimes are taken to be UTC.

    Args:
        timestamp: Last-modified time of the cached copy.
        max_age: Maximum tolerated age.
        now: Reference time. Read from the clock at call time when omitted.

    Returns:
        ``True`` if the copy should be refetched.
    """
    if timestamp is None:
        return True
    if max_age is None:
        return False
    if now is None:
        now = utcnow()
    return _as_utc(now) - _as_utc(timestamp) > max_age


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
