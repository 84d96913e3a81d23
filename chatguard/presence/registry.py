"""PresenceRegistry: connection state and last-seen of participants.

Both writes are upserts: a connection ping may arrive before registration,
and neither path ever touches the moderation fields of an existing user.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from chatguard.clock import Clock, parse_iso, to_iso, utcnow
from chatguard.errors import TransientStoreFailure, require_id
from chatguard.logger import get_logger
from chatguard.users.models import User
from chatguard.users.repository import UserRepository, new_user_document

log = get_logger("presence")


class PresenceRegistry:
    def __init__(self, users: UserRepository, clock: Optional[Clock] = None) -> None:
        self._users = users
        self._clock = clock or utcnow

    def register_or_refresh(
        self, user_id: str, ip: str = "", country: Optional[str] = None
    ) -> tuple[User, bool]:
        """Create the user on first sight, else refresh ip / country / lastSeen.

        Returns the stored user and whether it was created by this call.
        """
        user_id = require_id(user_id, "userId")
        now = to_iso(self._clock())
        res = self._users.upsert(
            user_id,
            set={"ip": ip or "", "country": country, "lastSeen": now, "connected": True},
            on_insert=new_user_document(user_id, now),
        )
        if res.upserted_id:
            log.info("User %s registered from %s (%s)", user_id, ip or "?", country or "?")
        return self._get(user_id), bool(res.upserted_id)

    def set_connection(self, user_id: str, connected: bool) -> User:
        """Record a connect / disconnect ping and refresh ``lastSeen``."""
        user_id = require_id(user_id, "userId")
        now = to_iso(self._clock())
        res = self._users.upsert(
            user_id,
            set={"connected": bool(connected), "lastSeen": now},
            on_insert=new_user_document(user_id, now, connected=bool(connected)),
        )
        if res.upserted_id:
            log.info("User %s created by connection ping", user_id)
        return self._get(user_id)

    def connected_users(self) -> list[User]:
        return self._users.list({"connected": True})

    def online_users(self, within_seconds: int = 300) -> list[User]:
        """Connected users seen within the last ``within_seconds``."""
        cutoff = self._clock() - timedelta(seconds=within_seconds)
        return [
            u for u in self.connected_users()
            if u.last_seen and parse_iso(u.last_seen) >= cutoff
        ]

    def _get(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            # Only reachable if the store dropped the upsert
            raise TransientStoreFailure(f"User '{user_id}' missing after upsert")
        return user
