"""UserRepository: explicit find-or-create / upsert access to user documents.

Documents keep the wire field names (``reportCount``, ``quarantineStatus`` ...)
so the same records can be shared with other services reading the store.
"""

from __future__ import annotations

from typing import Any, Optional

from chatguard.store.base import USERS, DocumentStore, UpdateResult
from chatguard.users.models import Ban, Quarantine, User


def new_user_document(
    user_id: str,
    now: str,
    ip: str = "",
    country: Optional[str] = None,
    connected: bool = True,
) -> dict:
    """A fresh user document with zeroed counters and no restrictions."""
    return {
        "id": user_id,
        "ip": ip,
        "country": country,
        "connectionTime": now,
        "lastSeen": now,
        "connected": connected,
        "reportCount": 0,
        "violations": 0,
        "quarantineStatus": None,
        "bannedStatus": None,
    }


def ban_to_dict(ban: Ban) -> dict:
    return {"isBanned": ban.is_banned, "reason": ban.reason, "timestamp": ban.timestamp}


def quarantine_to_dict(q: Quarantine) -> dict:
    return {
        "isQuarantined": q.is_quarantined,
        "reason": q.reason,
        "level": q.level,
        "startTime": q.start_time,
        "endTime": q.end_time,
    }


class UserRepository:
    """Typed access to the ``users`` collection."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _user_from_dict(d: dict) -> User:
        ban = None
        raw_ban = d.get("bannedStatus")
        if isinstance(raw_ban, dict):
            ban = Ban(
                is_banned=bool(raw_ban.get("isBanned", False)),
                reason=raw_ban.get("reason", ""),
                # Older records used startTime for the ban instant
                timestamp=raw_ban.get("timestamp") or raw_ban.get("startTime", ""),
            )
        quarantine = None
        raw_q = d.get("quarantineStatus")
        if isinstance(raw_q, dict):
            quarantine = Quarantine(
                is_quarantined=bool(raw_q.get("isQuarantined", False)),
                reason=raw_q.get("reason", ""),
                level=int(raw_q.get("level", 1)),
                start_time=raw_q.get("startTime", ""),
                end_time=raw_q.get("endTime"),
            )
        return User(
            id=d["id"],
            ip=d.get("ip") or "",
            country=d.get("country"),
            connection_time=d.get("connectionTime", ""),
            last_seen=d.get("lastSeen", ""),
            connected=bool(d.get("connected", False)),
            report_count=int(d.get("reportCount") or 0),
            violations=int(d.get("violations") or 0),
            quarantine=quarantine,
            ban=ban,
        )

    @staticmethod
    def to_document(u: User) -> dict:
        return {
            "id": u.id,
            "ip": u.ip,
            "country": u.country,
            "connectionTime": u.connection_time,
            "lastSeen": u.last_seen,
            "connected": u.connected,
            "reportCount": u.report_count,
            "violations": u.violations,
            "quarantineStatus": quarantine_to_dict(u.quarantine) if u.quarantine else None,
            "bannedStatus": ban_to_dict(u.ban) if u.ban else None,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, user_id: str) -> Optional[User]:
        d = self._store.find_one(USERS, {"id": user_id})
        return self._user_from_dict(d) if d else None

    def list(self, filter: Optional[dict[str, Any]] = None) -> list[User]:
        return [self._user_from_dict(d) for d in self._store.find(USERS, filter)]

    def count(self, filter: Optional[dict[str, Any]] = None) -> int:
        return self._store.count(USERS, filter)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def upsert(
        self,
        user_id: str,
        set: dict[str, Any],
        on_insert: Optional[dict[str, Any]] = None,
    ) -> UpdateResult:
        """Set ``set`` on the user, creating it from ``on_insert`` if absent.

        Keys present in ``set`` are removed from ``on_insert`` so the two
        never target the same field.
        """
        on_insert = {k: v for k, v in (on_insert or {}).items() if k not in set and k != "id"}
        return self._store.update_one(
            USERS, {"id": user_id}, set=set, set_on_insert=on_insert or None, upsert=True
        )

    def set_fields(self, user_id: str, fields: dict[str, Any]) -> bool:
        """Overwrite fields on an existing user. Returns False if it does not exist."""
        return self._store.update_one(USERS, {"id": user_id}, set=fields).matched_count > 0

    def set_ban(self, user_id: str, ban: Optional[Ban], extra: Optional[dict] = None) -> bool:
        fields = {"bannedStatus": ban_to_dict(ban) if ban else None, **(extra or {})}
        return self.set_fields(user_id, fields)

    def set_quarantine(
        self, user_id: str, quarantine: Optional[Quarantine], extra: Optional[dict] = None
    ) -> bool:
        fields = {
            "quarantineStatus": quarantine_to_dict(quarantine) if quarantine else None,
            **(extra or {}),
        }
        return self.set_fields(user_id, fields)

    def clear_quarantine_if(self, user_id: str, end_time: Optional[str]) -> bool:
        """Clear the quarantine only if it is still the one ending at ``end_time``.

        A quarantine re-applied concurrently carries a new end time and
        survives; racing clears of the same lapsed window are both no-ops
        except the first.
        """
        res = self._store.update_one(
            USERS,
            {"id": user_id, "quarantineStatus.endTime": end_time},
            set={"quarantineStatus": None},
        )
        return res.modified_count > 0

    def increment(self, user_id: str, field: str, amount: int = 1) -> bool:
        return self._store.update_one(USERS, {"id": user_id}, inc={field: amount}).matched_count > 0
