"""DocumentStore interface and the in-process matching/update helpers."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

USERS = "users"
CALLS = "calls"
REPORTS = "reports"
PAYMENTS = "payments"
MODERATOR_ACTIONS = "moderator_actions"

COLLECTIONS = (USERS, CALLS, REPORTS, PAYMENTS, MODERATOR_ACTIONS)

_MISSING = object()


@dataclass
class UpdateResult:
    """Outcome of :meth:`DocumentStore.update_one`."""

    matched_count: int = 0
    modified_count: int = 0
    upserted_id: Optional[str] = None


class DocumentStore(ABC):
    """Keyed document storage.

    Every document carries a string ``id`` that is unique per collection.
    ``update_one`` must be atomic for the single document it touches; extra
    filter conditions turn it into a conditional (compare-and-set) update.
    """

    @abstractmethod
    def find_one(self, collection: str, filter: dict[str, Any]) -> Optional[dict]:
        ...

    @abstractmethod
    def find(self, collection: str, filter: Optional[dict[str, Any]] = None) -> list[dict]:
        ...

    def count(self, collection: str, filter: Optional[dict[str, Any]] = None) -> int:
        return len(self.find(collection, filter))

    @abstractmethod
    def insert_one(self, collection: str, document: dict) -> str:
        """Insert ``document``; raise ``DuplicateDocument`` if its id exists."""

    @abstractmethod
    def update_one(
        self,
        collection: str,
        filter: dict[str, Any],
        *,
        set: Optional[dict[str, Any]] = None,
        unset: Optional[list[str]] = None,
        inc: Optional[dict[str, int]] = None,
        set_on_insert: Optional[dict[str, Any]] = None,
        upsert: bool = False,
    ) -> UpdateResult:
        ...

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""


# ---------------------------------------------------------------------------
# Helpers shared by the in-process backends
# ---------------------------------------------------------------------------


def get_path(document: dict, path: str) -> Any:
    """Resolve a dotted path; missing segments yield ``None``."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part, _MISSING)
        if value is _MISSING:
            return None
    return value


def set_path(document: dict, path: str, value: Any) -> None:
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = value


def unset_path(document: dict, path: str) -> None:
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        target = target.get(part)
        if not isinstance(target, dict):
            return
    target.pop(parts[-1], None)


def matches(document: dict, filter: Optional[dict[str, Any]]) -> bool:
    """Equality match on every filter key (dotted paths allowed)."""
    if not filter:
        return True
    return all(get_path(document, key) == expected for key, expected in filter.items())


def apply_update(
    document: dict,
    *,
    set: Optional[dict[str, Any]] = None,
    unset: Optional[list[str]] = None,
    inc: Optional[dict[str, int]] = None,
) -> bool:
    """Apply an update in place. Returns True if the document changed."""
    before = copy.deepcopy(document)
    for path, value in (set or {}).items():
        set_path(document, path, copy.deepcopy(value))
    for path in unset or []:
        unset_path(document, path)
    for path, amount in (inc or {}).items():
        current = get_path(document, path) or 0
        set_path(document, path, current + amount)
    return document != before


def seed_from_filter(filter: dict[str, Any]) -> dict:
    """Build the base of an upserted document from the filter's equality keys."""
    document: dict = {}
    for key, value in filter.items():
        set_path(document, key, copy.deepcopy(value))
    return document
