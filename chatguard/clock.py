"""Time helpers.

All instants are timezone-aware UTC and are persisted as ISO-8601 strings.
Components accept an injectable ``clock`` so tests can move time explicitly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def parse_iso(value: str | datetime) -> datetime:
    """Parse a stored timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def whole_seconds_between(start: str | datetime, end: datetime) -> int:
    """Floor of ``end - start`` in seconds, never negative."""
    delta = (end - parse_iso(start)).total_seconds()
    return max(0, int(delta // 1))
