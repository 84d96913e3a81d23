"""ModerationEngine: administrator-initiated restriction changes.

Every action is a last-writer-wins overwrite of one sub-document on the user
record (``bannedStatus`` or ``quarantineStatus``), never a delta, so a retry
after a ``TransientStoreFailure`` or an apparent success cannot double-apply.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from chatguard.clock import Clock, to_iso, utcnow
from chatguard.config import DEFAULT_REASON, QuarantinePolicy
from chatguard.errors import InvalidArgument, NotFound, TransientStoreFailure, require_id
from chatguard.logger import get_logger
from chatguard.moderation.models import ModerationAction
from chatguard.security.audit_log import AuditLogger
from chatguard.users.models import Ban, Quarantine
from chatguard.users.repository import UserRepository

log = get_logger("moderation.engine")

SYSTEM_ACTOR = "system"


def _reason_or_default(reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    return reason or DEFAULT_REASON


def validate_level(level: Optional[int]) -> int:
    """Default a missing level to 1; reject anything but a positive integer."""
    if level is None:
        return 1
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidArgument(f"Quarantine level must be a positive integer, got {level!r}")
    if level < 1:
        raise InvalidArgument(f"Quarantine level must be >= 1, got {level}")
    return level


class ModerationEngine:
    """Applies ban / unban / quarantine / unquarantine to user records."""

    def __init__(
        self,
        users: UserRepository,
        policy: Optional[QuarantinePolicy] = None,
        audit: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._users = users
        self._policy = policy or QuarantinePolicy()
        self._audit = audit
        self._clock = clock or utcnow

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def ban(self, user_id: str, reason: Optional[str] = None, admin_id: str = SYSTEM_ACTOR) -> Ban:
        """Ban a user indefinitely. Re-banning overwrites reason and timestamp.

        A ban supersedes any quarantine, so the quarantine window is cleared
        in the same write.
        """
        user_id = require_id(user_id, "userId")
        ban = Ban(is_banned=True, reason=_reason_or_default(reason), timestamp=to_iso(self._clock()))
        extra = {"connected": False, "quarantineStatus": None}
        if not self._users.set_ban(user_id, ban, extra=extra):
            raise NotFound(f"User '{user_id}' not found")
        log.info("User %s banned by %s: %s", user_id, admin_id, ban.reason)
        self._record(admin_id, ModerationAction.ban, user_id, ban.reason)
        return ban

    def unban(self, user_id: str, admin_id: str = SYSTEM_ACTOR, reason: str = "") -> bool:
        """Clear any ban. Returns False (no error) when the user is unknown."""
        user_id = require_id(user_id, "userId")
        if not self._users.set_ban(user_id, None):
            log.info("Unban for unknown user %s ignored", user_id)
            return False
        log.info("User %s unbanned by %s", user_id, admin_id)
        self._record(admin_id, ModerationAction.unban, user_id, reason)
        return True

    def quarantine(
        self,
        user_id: str,
        reason: Optional[str] = None,
        level: Optional[int] = None,
        admin_id: str = SYSTEM_ACTOR,
    ) -> Quarantine:
        """Quarantine a user for the window of ``level`` (default 1).

        Re-quarantining replaces the previous window entirely.
        """
        user_id = require_id(user_id, "userId")
        quarantine = self.build_quarantine(reason, level, self._clock())
        if not self._users.set_quarantine(user_id, quarantine, extra={"connected": False}):
            raise NotFound(f"User '{user_id}' not found")
        log.info(
            "User %s quarantined by %s at level %d until %s: %s",
            user_id, admin_id, quarantine.level, quarantine.end_time, quarantine.reason,
        )
        self._record(admin_id, ModerationAction.quarantine, user_id, quarantine.reason, quarantine.level)
        return quarantine

    def unquarantine(self, user_id: str, admin_id: str = SYSTEM_ACTOR, reason: str = "") -> bool:
        """Clear any quarantine unconditionally. Returns False for unknown users."""
        user_id = require_id(user_id, "userId")
        if not self._users.set_quarantine(user_id, None):
            log.info("Unquarantine for unknown user %s ignored", user_id)
            return False
        log.info("User %s removed from quarantine by %s", user_id, admin_id)
        self._record(admin_id, ModerationAction.unquarantine, user_id, reason)
        return True

    def apply(
        self,
        action: str,
        user_id: str,
        reason: Optional[str] = None,
        level: Optional[int] = None,
        admin_id: str = SYSTEM_ACTOR,
    ) -> None:
        """Dispatch an action by name (``ban`` | ``unban`` | ``quarantine`` | ``unquarantine``)."""
        if action == ModerationAction.ban.value:
            self.ban(user_id, reason, admin_id=admin_id)
        elif action == ModerationAction.unban.value:
            self.unban(user_id, admin_id=admin_id, reason=reason or "")
        elif action == ModerationAction.quarantine.value:
            self.quarantine(user_id, reason, level, admin_id=admin_id)
        elif action == ModerationAction.unquarantine.value:
            self.unquarantine(user_id, admin_id=admin_id, reason=reason or "")
        else:
            raise InvalidArgument(f"Invalid action '{action}'")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def build_quarantine(
        self, reason: Optional[str], level: Optional[int], start: datetime
    ) -> Quarantine:
        """Compute a quarantine window starting at ``start`` from the policy table."""
        level = validate_level(level)
        end = start + self._policy.duration_for(level)
        return Quarantine(
            is_quarantined=True,
            reason=_reason_or_default(reason),
            level=level,
            start_time=to_iso(start),
            end_time=to_iso(end),
        )

    def _record(
        self,
        admin_id: str,
        action: ModerationAction,
        user_id: str,
        reason: str = "",
        level: Optional[int] = None,
    ) -> None:
        if self._audit is None:
            return
        try:
            self._audit.record(admin_id, action.value, user_id, reason, level)
        except TransientStoreFailure as exc:
            log.warning("Audit write for %s on %s failed: %s", action.value, user_id, exc)
