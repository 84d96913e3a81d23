"""StatusResolver: the one place restriction expiry is evaluated.

Quarantines lapse lazily: there is no sweeper, the first read that sees
``now >= endTime`` reports the user as free and clears the stored window.
"""

from __future__ import annotations

from typing import Optional

from chatguard.clock import Clock, parse_iso, utcnow
from chatguard.errors import TransientStoreFailure, require_id
from chatguard.logger import get_logger
from chatguard.moderation.models import StatusResult
from chatguard.users.models import User
from chatguard.users.repository import UserRepository

log = get_logger("moderation.resolver")


class StatusResolver:
    """Compute a user's effective status from the stored record and the clock."""

    def __init__(self, users: UserRepository, clock: Optional[Clock] = None) -> None:
        self._users = users
        self._clock = clock or utcnow

    def resolve(self, user_id: str) -> StatusResult:
        """Fetch and resolve ``user_id``. Unknown users are never restricted."""
        user_id = require_id(user_id, "userId")
        user = self._users.get(user_id)
        if user is None:
            return StatusResult()
        return self.resolve_user(user)

    def resolve_user(self, user: User) -> StatusResult:
        """Resolve an already-loaded record (used by listing paths)."""
        if user.ban is not None and user.ban.is_banned:
            return StatusResult(banned=True)

        q = user.quarantine
        if q is None or not q.is_quarantined:
            return StatusResult()

        try:
            end = parse_iso(q.end_time)
        except (TypeError, ValueError, AttributeError):
            # Unreadable window: treat as lapsed rather than restricting forever
            log.warning(
                "Quarantine for %s has unreadable endTime %r; treating as lapsed", user.id, q.end_time
            )
            self._clear_lapsed(user.id, q.end_time)
            return StatusResult()

        if self._clock() < end:
            return StatusResult(quarantined=True, quarantine_end_time=q.end_time)

        self._clear_lapsed(user.id, q.end_time)
        return StatusResult()

    def is_eligible(self, user_id: str) -> bool:
        return self.resolve(user_id).eligible

    def _clear_lapsed(self, user_id: str, end_time: Optional[str]) -> None:
        # Best effort: the answer is already decided, any failed write is only logged
        try:
            if self._users.clear_quarantine_if(user_id, end_time):
                log.info("Quarantine for %s lapsed at %s; cleared", user_id, end_time)
        except TransientStoreFailure as exc:
            log.warning("Could not clear lapsed quarantine for %s: %s", user_id, exc)
        except Exception:
            log.warning("Unexpected error clearing lapsed quarantine for %s", user_id, exc_info=True)
