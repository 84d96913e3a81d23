"""Call session models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CallStatus(str, Enum):
    active = "active"
    ended = "ended"


@dataclass
class Call:
    """One tracked pairing between two users.

    For an ended call ``end_time`` and ``duration`` are both set and
    ``duration`` is the whole seconds between start and end. For an active
    call listed by the tracker, ``duration`` is the live elapsed time.
    """

    id: str
    user1_id: str
    user2_id: str
    start_time: str
    status: CallStatus = CallStatus.active
    end_time: Optional[str] = None
    duration: Optional[int] = None
    end_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = CallStatus(self.status)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1_id, self.user2_id)
