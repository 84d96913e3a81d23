"""Report domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ReportStatus(str, Enum):
    """Triage status of a report."""

    pending = "pending"
    reviewed = "reviewed"
    dismissed = "dismissed"
    actioned = "actioned"


# Forward-only: a decided report is never reopened
ALLOWED_TRANSITIONS: dict[ReportStatus, set[ReportStatus]] = {
    ReportStatus.pending: {ReportStatus.reviewed, ReportStatus.dismissed, ReportStatus.actioned},
    ReportStatus.reviewed: {ReportStatus.dismissed, ReportStatus.actioned},
    ReportStatus.dismissed: set(),
    ReportStatus.actioned: set(),
}


@dataclass
class Report:
    """A user-submitted report. Reporter, reported user and reason never change."""

    id: str
    reporter_id: str
    reported_id: str
    reason: str
    status: ReportStatus = ReportStatus.pending
    timestamp: str = ""
    details: str = ""
    screenshot: Optional[str] = None
    updated_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.status, str):
            self.status = ReportStatus(self.status)


@dataclass
class SubmitResult:
    """Outcome of a report submission."""

    report: Report
    auto_quarantined: bool = False
    quarantine_level: Optional[int] = None
