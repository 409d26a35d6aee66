"""Datetime helpers.

Provides UTC timestamp helpers without using deprecated ``datetime.utcnow()``.
All values are timezone-aware; catalog columns are declared with
``DateTime(timezone=True)``.
"""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def from_timestamp(ts: float) -> datetime:
    """Convert a filesystem ``st_mtime`` to an aware UTC datetime."""
    return datetime.fromtimestamp(ts, UTC)
