"""Admin router -- moderation actions, report triage, live monitoring, stats.

All endpoints require the admin bearer token.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from chatguard.engine import Engine
from web.backend.app.middleware.auth import get_engine, require_admin
from web.backend.app.models.api import (
    ActionResponse,
    AdminActionRequest,
    AuditEntryResponse,
    CallListResponse,
    ReportListResponse,
    ReportResponse,
    ReportStatusUpdate,
    StatsResponse,
    UserListResponse,
)
from web.backend.app.serializers import (
    audit_response,
    call_response,
    report_response,
    stats_response,
    user_response,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])

_ACTION_MESSAGES = {
    "ban": "User banned successfully",
    "unban": "User unbanned successfully",
    "quarantine": "User quarantined successfully",
    "unquarantine": "User removed from quarantine successfully",
}


@router.post("/actions", response_model=ActionResponse, summary="Apply a moderation action")
async def admin_action(
    body: AdminActionRequest,
    engine: Engine = Depends(get_engine),
    admin_id: str = Depends(require_admin),
):
    """Ban, unban, quarantine or unquarantine a user. Every action is safe to retry."""
    engine.moderation.apply(body.action, body.userId, body.reason, body.level, admin_id=admin_id)
    return ActionResponse(success=True, message=_ACTION_MESSAGES[body.action])


@router.get("/actions/history", response_model=list[AuditEntryResponse], summary="Moderator action log")
async def action_history(
    userId: Optional[str] = Query(None),
    adminId: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    engine: Engine = Depends(get_engine),
    _admin: str = Depends(require_admin),
):
    entries = engine.audit.history(user_id=userId, admin_id=adminId, limit=limit)
    return [audit_response(e) for e in entries]


@router.get("/reports", response_model=ReportListResponse, summary="List reports")
async def list_reports(
    status: Literal["pending", "all"] = Query("all"),
    engine: Engine = Depends(get_engine),
    _admin: str = Depends(require_admin),
):
    return ReportListResponse(reports=[report_response(r) for r in engine.reports.list(status)])


@router.patch("/reports", response_model=ReportResponse, summary="Update report status")
async def update_report(
    body: ReportStatusUpdate,
    engine: Engine = Depends(get_engine),
    _admin: str = Depends(require_admin),
):
    """Move a report forward in triage. Backwards moves return 409."""
    return report_response(engine.reports.update_status(body.reportId, body.status))


@router.get("/active-calls", response_model=CallListResponse, summary="Live calls")
async def active_calls(
    engine: Engine = Depends(get_engine),
    _admin: str = Depends(require_admin),
):
    """Active calls with a duration computed at request time."""
    return CallListResponse(calls=[call_response(c) for c in engine.calls.list_active()])


@router.get("/users", response_model=UserListResponse, summary="List users")
async def list_users(
    filter: Literal["all", "active", "online", "banned", "quarantined"] = Query("all"),
    engine: Engine = Depends(get_engine),
    _admin: str = Depends(require_admin),
):
    return UserListResponse(users=[user_response(u) for u in engine.dashboard.list_users(filter)])


@router.get("/stats", response_model=StatsResponse, summary="Dashboard stats")
async def stats(
    engine: Engine = Depends(get_engine),
    _admin: str = Depends(require_admin),
):
    return stats_response(engine.dashboard.stats())
