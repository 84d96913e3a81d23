"""Convert chatguard domain objects into the API response models."""

from __future__ import annotations

from chatguard.admin.dashboard import DashboardStats
from chatguard.calls.models import Call
from chatguard.calls.tracker import CallTracker
from chatguard.reports.models import Report
from chatguard.reports.queue import ReportQueue
from chatguard.security.audit_log import AuditEntry
from chatguard.users.models import User
from chatguard.users.repository import UserRepository
from web.backend.app.models.api import (
    AuditEntryResponse,
    CallResponse,
    ReportResponse,
    StatsResponse,
    UserResponse,
)


def user_response(user: User) -> UserResponse:
    return UserResponse(**UserRepository.to_document(user))


def call_response(call: Call) -> CallResponse:
    doc = CallTracker.to_document(call)
    # Active calls carry a live duration that is never stored
    doc["duration"] = call.duration
    return CallResponse(**doc)


def report_response(report: Report) -> ReportResponse:
    return ReportResponse(**ReportQueue.to_document(report))


def stats_response(s: DashboardStats) -> StatsResponse:
    return StatsResponse(
        totalUsers=s.total_users,
        activeUsers=s.active_users,
        bannedUsers=s.banned_users,
        quarantinedUsers=s.quarantined_users,
        pendingReports=s.pending_reports,
        totalReports=s.total_reports,
        activeCalls=s.active_calls,
        totalPayments=s.total_payments,
        revenueTotal=s.revenue_total,
    )


def audit_response(e: AuditEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=e.id,
        timestamp=e.timestamp,
        adminId=e.admin_id,
        action=e.action,
        userId=e.user_id,
        reason=e.reason,
        level=e.level,
    )
