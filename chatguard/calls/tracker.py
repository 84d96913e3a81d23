"""CallTracker: start, end and live listing of call sessions."""

from __future__ import annotations

from typing import Optional

from chatguard.calls.models import Call, CallStatus
from chatguard.clock import Clock, to_iso, utcnow, whole_seconds_between
from chatguard.errors import Conflict, DuplicateDocument, InvalidArgument, NotFound, require_id
from chatguard.logger import get_logger
from chatguard.store.base import CALLS, DocumentStore

log = get_logger("calls")


class CallTracker:
    """Records call lifecycles in the ``calls`` collection.

    A call is created once, closed once and never reopened.
    """

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None) -> None:
        self._store = store
        self._clock = clock or utcnow

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _call_from_dict(d: dict) -> Call:
        return Call(
            id=d["id"],
            user1_id=d.get("user1Id", ""),
            user2_id=d.get("user2Id", ""),
            start_time=d.get("startTime", ""),
            status=d.get("status", CallStatus.active.value),
            end_time=d.get("endTime"),
            duration=d.get("duration"),
            end_reason=d.get("endReason"),
        )

    @staticmethod
    def to_document(c: Call) -> dict:
        doc = {
            "id": c.id,
            "user1Id": c.user1_id,
            "user2Id": c.user2_id,
            "startTime": c.start_time,
            "status": c.status.value,
        }
        if c.end_time is not None:
            doc["endTime"] = c.end_time
        if c.duration is not None:
            doc["duration"] = c.duration
        if c.end_reason is not None:
            doc["endReason"] = c.end_reason
        return doc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_call(self, call_id: str, user_a_id: str, user_b_id: str) -> Call:
        """Open a session. A second start for the same id is a ``Conflict``."""
        call_id = require_id(call_id, "callId")
        user_a_id = require_id(user_a_id, "user1Id")
        user_b_id = require_id(user_b_id, "user2Id")
        if user_a_id == user_b_id:
            raise InvalidArgument("A call needs two distinct users")

        call = Call(
            id=call_id,
            user1_id=user_a_id,
            user2_id=user_b_id,
            start_time=to_iso(self._clock()),
        )
        try:
            self._store.insert_one(CALLS, self.to_document(call))
        except DuplicateDocument as exc:
            log.warning("Duplicate start for call %s rejected", call_id)
            raise Conflict(f"Call '{call_id}' already exists") from exc
        log.info("Call %s started between %s and %s", call_id, user_a_id, user_b_id)
        return call

    def end_call(self, call_id: str, reason: Optional[str] = None) -> Call:
        """Close a session. Ending an already-ended call returns it unchanged."""
        call_id = require_id(call_id, "callId")
        existing = self.get(call_id)
        if existing is None:
            raise NotFound(f"Call '{call_id}' not found")
        if existing.status == CallStatus.ended:
            return existing

        now = self._clock()
        fields = {
            "status": CallStatus.ended.value,
            "endTime": to_iso(now),
            "duration": whole_seconds_between(existing.start_time, now),
            "endReason": reason,
        }
        # Only an active call may be closed; a concurrent end that won keeps its values
        res = self._store.update_one(
            CALLS, {"id": call_id, "status": CallStatus.active.value}, set=fields
        )
        if res.matched_count:
            log.info("Call %s ended after %ss (%s)", call_id, fields["duration"], reason)
        return self.get(call_id) or existing

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, call_id: str) -> Optional[Call]:
        d = self._store.find_one(CALLS, {"id": call_id})
        return self._call_from_dict(d) if d else None

    def list_active(self) -> list[Call]:
        """Active calls with ``duration`` computed fresh against the clock."""
        now = self._clock()
        calls = [
            self._call_from_dict(d)
            for d in self._store.find(CALLS, {"status": CallStatus.active.value})
        ]
        for call in calls:
            call.duration = whole_seconds_between(call.start_time, now)
        calls.sort(key=lambda c: c.start_time)
        return calls

    def active_for_user(self, user_id: str) -> list[Call]:
        user_id = require_id(user_id, "userId")
        return [c for c in self.list_active() if c.involves(user_id)]
