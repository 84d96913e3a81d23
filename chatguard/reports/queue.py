"""ReportQueue: user reports, triage status, and the auto-quarantine threshold."""

from __future__ import annotations

import uuid
from typing import Optional

from chatguard.clock import Clock, to_iso, utcnow
from chatguard.config import QuarantinePolicy
from chatguard.errors import Conflict, InvalidArgument, NotFound, require_id
from chatguard.logger import get_logger
from chatguard.moderation.engine import ModerationEngine
from chatguard.moderation.resolver import StatusResolver
from chatguard.reports.models import ALLOWED_TRANSITIONS, Report, ReportStatus, SubmitResult
from chatguard.store.base import REPORTS, DocumentStore
from chatguard.users.repository import UserRepository

log = get_logger("reports")

ANONYMOUS = "anonymous"
AUTO_QUARANTINE_REASON = "Multiple reports"
AUTO_ACTOR = "auto-moderation"


class ReportQueue:
    """Stores reports in the ``reports`` collection and feeds moderation."""

    def __init__(
        self,
        store: DocumentStore,
        users: UserRepository,
        resolver: StatusResolver,
        moderation: ModerationEngine,
        policy: Optional[QuarantinePolicy] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._users = users
        self._resolver = resolver
        self._moderation = moderation
        self._policy = policy or QuarantinePolicy()
        self._clock = clock or utcnow

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _report_from_dict(d: dict) -> Report:
        return Report(
            id=d["id"],
            reporter_id=d.get("reportedBy", ANONYMOUS),
            reported_id=d.get("userId", ""),
            reason=d.get("reason", ""),
            status=d.get("status", ReportStatus.pending.value),
            timestamp=d.get("timestamp", ""),
            details=d.get("details") or "",
            screenshot=d.get("screenshot"),
            updated_at=d.get("updatedAt", ""),
        )

    @staticmethod
    def to_document(r: Report) -> dict:
        return {
            "id": r.id,
            "userId": r.reported_id,
            "reportedBy": r.reporter_id,
            "reason": r.reason,
            "details": r.details,
            "screenshot": r.screenshot,
            "timestamp": r.timestamp,
            "status": r.status.value,
            "updatedAt": r.updated_at,
        }

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        reporter_id: Optional[str],
        reported_id: str,
        reason: str,
        details: str = "",
        screenshot: Optional[str] = None,
    ) -> SubmitResult:
        """Create a pending report and bump the reported user's ``reportCount``.

        Once the count reaches the policy threshold an unrestricted user is
        quarantined automatically at a level driven by prior violations.
        """
        reported_id = require_id(reported_id, "reportedUserId")
        reporter_id = (reporter_id or "").strip() or ANONYMOUS
        if reporter_id == reported_id:
            raise InvalidArgument("Users cannot report themselves")
        reason = (reason or "").strip()
        if not reason:
            raise InvalidArgument("reason is required")

        now = to_iso(self._clock())
        report = Report(
            id=f"report-{uuid.uuid4()}",
            reporter_id=reporter_id,
            reported_id=reported_id,
            reason=reason,
            timestamp=now,
            details=details or "",
            screenshot=screenshot,
            updated_at=now,
        )
        self._store.insert_one(REPORTS, self.to_document(report))
        self._users.increment(reported_id, "reportCount")
        log.info("Report %s filed against %s by %s: %s", report.id, reported_id, reporter_id, reason)

        level = self._maybe_auto_quarantine(reported_id)
        return SubmitResult(report=report, auto_quarantined=level is not None, quarantine_level=level)

    def _maybe_auto_quarantine(self, user_id: str) -> Optional[int]:
        user = self._users.get(user_id)
        if user is None or user.report_count < self._policy.report_threshold:
            return None
        if not self._resolver.resolve_user(user).eligible:
            return None

        level = min(user.violations + 1, self._policy.max_auto_level)
        self._moderation.quarantine(user_id, AUTO_QUARANTINE_REASON, level, admin_id=AUTO_ACTOR)
        self._users.increment(user_id, "violations")
        log.info("User %s auto-quarantined at level %d after %d reports", user_id, level, user.report_count)
        return level

    # ------------------------------------------------------------------
    # Triage
    # ------------------------------------------------------------------

    def get(self, report_id: str) -> Optional[Report]:
        d = self._store.find_one(REPORTS, {"id": report_id})
        return self._report_from_dict(d) if d else None

    def list(self, filter: str = "all") -> list[Report]:
        """Return reports newest first; ``filter="pending"`` keeps only pending ones."""
        if filter not in ("pending", "all"):
            raise InvalidArgument(f"Unknown report filter '{filter}'")
        query = {"status": ReportStatus.pending.value} if filter == "pending" else None
        reports = [self._report_from_dict(d) for d in self._store.find(REPORTS, query)]
        reports.sort(key=lambda r: r.timestamp, reverse=True)
        return reports

    def update_status(self, report_id: str, status: str) -> Report:
        """Move a report forward in triage.

        Setting the current status again is a no-op; moving backwards (or out
        of a terminal status) raises ``Conflict``.
        """
        report_id = require_id(report_id, "reportId")
        try:
            target = ReportStatus(status)
        except ValueError:
            raise InvalidArgument(f"Invalid report status '{status}'") from None

        report = self.get(report_id)
        if report is None:
            raise NotFound(f"Report '{report_id}' not found")
        if report.status == target:
            return report
        if target not in ALLOWED_TRANSITIONS[report.status]:
            raise Conflict(f"Cannot move report from {report.status.value} to {target.value}")

        now = to_iso(self._clock())
        res = self._store.update_one(
            REPORTS,
            {"id": report_id, "status": report.status.value},
            set={"status": target.value, "updatedAt": now},
        )
        if not res.matched_count:
            # Someone else moved it first
            current = self.get(report_id)
            if current is not None and current.status == target:
                return current
            raise Conflict(f"Report '{report_id}' changed concurrently")

        log.info("Report %s moved %s -> %s", report_id, report.status.value, target.value)
        report.status = target
        report.updated_at = now
        return report
