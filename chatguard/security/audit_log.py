"""Audit trail for moderator actions.

Every ban, unban, quarantine and unquarantine is stored in the
``moderator_actions`` collection with the acting administrator and reason,
and can be queried or exported as JSON / CSV.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass
from typing import Optional

from chatguard.clock import Clock, to_iso, utcnow
from chatguard.store.base import MODERATOR_ACTIONS, DocumentStore


def _quote(value: str) -> str:
    """Quote a free-text CSV field, doubling embedded quotes."""
    return '"' + (value or "").replace('"', '""') + '"'


@dataclass
class AuditEntry:
    """A single moderator action."""

    id: str
    timestamp: str
    admin_id: str
    action: str
    user_id: str
    reason: str = ""
    level: Optional[int] = None


class AuditLogger:
    """Store-backed moderator action log."""

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or utcnow

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _entry_from_dict(d: dict) -> AuditEntry:
        return AuditEntry(
            id=d["id"],
            timestamp=d.get("timestamp", ""),
            admin_id=d.get("adminId", ""),
            action=d.get("action", ""),
            user_id=d.get("userId", ""),
            reason=d.get("reason", ""),
            level=d.get("level"),
        )

    @staticmethod
    def _entry_to_dict(e: AuditEntry) -> dict:
        return {
            "id": e.id,
            "timestamp": e.timestamp,
            "adminId": e.admin_id,
            "action": e.action,
            "userId": e.user_id,
            "reason": e.reason,
            "level": e.level,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(
        self,
        admin_id: str,
        action: str,
        user_id: str,
        reason: str = "",
        level: Optional[int] = None,
    ) -> AuditEntry:
        """Record a moderator action and return the created entry."""
        entry = AuditEntry(
            id=f"action-{uuid.uuid4().hex[:16]}",
            timestamp=to_iso(self._clock()),
            admin_id=admin_id,
            action=action,
            user_id=user_id,
            reason=reason,
            level=level,
        )
        self._store.insert_one(MODERATOR_ACTIONS, self._entry_to_dict(entry))
        return entry

    def history(
        self,
        *,
        user_id: Optional[str] = None,
        admin_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditEntry]:
        """Return filtered moderator actions, newest first."""
        query: dict = {}
        if user_id:
            query["userId"] = user_id
        if admin_id:
            query["adminId"] = admin_id
        if action:
            query["action"] = action
        entries = [self._entry_from_dict(d) for d in self._store.find(MODERATOR_ACTIONS, query)]

        # Newest first
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def export(self, fmt: str = "json", **filters) -> str:
        """Export moderator actions in the specified format (``json`` or ``csv``)."""
        entries = self.history(limit=filters.pop("limit", 10000), **filters)

        if fmt == "csv":
            lines = ["id,timestamp,admin_id,action,user_id,level,reason"]
            for e in entries:
                level = "" if e.level is None else str(e.level)
                lines.append(
                    f"{e.id},{e.timestamp},{_quote(e.admin_id)},{e.action},"
                    f"{_quote(e.user_id)},{level},{_quote(e.reason)}"
                )
            return "\n".join(lines)

        # Default to JSON
        return json.dumps([asdict(e) for e in entries], indent=2)
