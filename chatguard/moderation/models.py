"""Data models for moderation results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ModerationAction(str, Enum):
    """Administrator actions recorded in the audit trail."""

    ban = "ban"
    unban = "unban"
    quarantine = "quarantine"
    unquarantine = "unquarantine"


@dataclass
class StatusResult:
    """Effective access status of a user at one instant.

    Never both ``banned`` and ``quarantined``: a ban takes precedence.
    """

    banned: bool = False
    quarantined: bool = False
    quarantine_end_time: Optional[str] = None

    @property
    def eligible(self) -> bool:
        """True when the user may be paired right now."""
        return not (self.banned or self.quarantined)

    def as_gate(self) -> dict:
        """Shape consumed by gating logic: ``{isBanned, isQuarantined, endTime?}``."""
        out: dict = {"isBanned": self.banned, "isQuarantined": self.quarantined}
        if self.quarantined and self.quarantine_end_time:
            out["endTime"] = self.quarantine_end_time
        return out
