"""Error taxonomy for the chatguard engine.

Every error is scoped to the single operation that raised it; nothing here is
fatal to the process.
"""

from __future__ import annotations


class ChatguardError(Exception):
    """Base class for all engine errors."""


class InvalidArgument(ChatguardError):
    """Missing or malformed identifiers, non-positive level, self-report."""


class NotFound(ChatguardError):
    """The targeted user, call or report does not exist."""


class Conflict(ChatguardError):
    """The operation clashes with existing state (e.g. duplicate call start)."""


class DuplicateDocument(Conflict):
    """A store insert hit an id that already exists."""


class TransientStoreFailure(ChatguardError):
    """The backing store was unreachable or a write failed.

    Moderation mutations are idempotent overwrites, so callers may retry.
    """


def require_id(value: str | None, name: str) -> str:
    """Return ``value`` stripped, raising ``InvalidArgument`` when empty."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{name} is required")
    return value.strip()
