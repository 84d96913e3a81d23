"""Pydantic models for API request/response serialization.

These models mirror the chatguard dataclasses and keep the wire field names
the web and admin clients already use (``userId``, ``isBanned`` ...).
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Users / presence
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    id: str = ""
    ip: str = ""
    country: Optional[str] = None


class ConnectionRequest(BaseModel):
    userId: str = ""
    status: Literal["connected", "disconnected"] = "connected"


class StatusResponse(BaseModel):
    """Gate shape: callers treat ``isQuarantined=false`` as immediately eligible."""

    isBanned: bool = False
    isQuarantined: bool = False
    endTime: Optional[str] = None


class BanResponse(BaseModel):
    isBanned: bool = True
    reason: str = ""
    timestamp: str = ""


class QuarantineResponse(BaseModel):
    isQuarantined: bool = True
    reason: str = ""
    level: int = 1
    startTime: str = ""
    endTime: Optional[str] = ""


class UserResponse(BaseModel):
    """Mirrors chatguard.users.models.User."""

    id: str
    ip: str = ""
    country: Optional[str] = None
    connectionTime: str = ""
    lastSeen: str = ""
    connected: bool = False
    reportCount: int = 0
    violations: int = 0
    quarantineStatus: Optional[QuarantineResponse] = None
    bannedStatus: Optional[BanResponse] = None


class UserListResponse(BaseModel):
    users: list[UserResponse] = Field(default_factory=list)


class PaymentRequest(BaseModel):
    userId: str = ""
    amount: float = 0
    reason: Literal["unquarantine", "unban", "other"] = "other"


class PaymentResponse(BaseModel):
    success: bool = True
    paymentId: str = ""


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------


class TrackCallRequest(BaseModel):
    callId: str = ""
    user1Id: str = ""
    user2Id: str = ""


class EndCallRequest(BaseModel):
    callId: str = ""
    reason: Optional[str] = None


class CallResponse(BaseModel):
    """Mirrors chatguard.calls.models.Call."""

    id: str
    user1Id: str
    user2Id: str
    startTime: str
    status: Literal["active", "ended"] = "active"
    endTime: Optional[str] = None
    duration: Optional[int] = None
    endReason: Optional[str] = None


class CallListResponse(BaseModel):
    calls: list[CallResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class ReportRequest(BaseModel):
    reportedUserId: str = ""
    reportedBy: Optional[str] = None
    reason: str = ""
    details: str = ""
    screenshot: Optional[str] = None


class ReportResponse(BaseModel):
    """Mirrors chatguard.reports.models.Report."""

    id: str
    userId: str
    reportedBy: str
    reason: str
    details: str = ""
    screenshot: Optional[str] = None
    timestamp: str = ""
    status: Literal["pending", "reviewed", "dismissed", "actioned"] = "pending"
    updatedAt: str = ""


class SubmitReportResponse(BaseModel):
    success: bool = True
    report: ReportResponse
    autoQuarantined: bool = False
    quarantineLevel: Optional[int] = None


class ReportListResponse(BaseModel):
    reports: list[ReportResponse] = Field(default_factory=list)


class ReportStatusUpdate(BaseModel):
    reportId: str = ""
    status: Literal["pending", "reviewed", "dismissed", "actioned"]


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminActionRequest(BaseModel):
    action: Literal["ban", "unban", "quarantine", "unquarantine"]
    userId: str = ""
    reason: Optional[str] = None
    level: Optional[int] = None


class ActionResponse(BaseModel):
    success: bool = True
    message: str = ""


class StatsResponse(BaseModel):
    """Mirrors chatguard.admin.dashboard.DashboardStats."""

    totalUsers: int = 0
    activeUsers: int = 0
    bannedUsers: int = 0
    quarantinedUsers: int = 0
    pendingReports: int = 0
    totalReports: int = 0
    activeCalls: int = 0
    totalPayments: int = 0
    revenueTotal: float = 0.0


class AuditEntryResponse(BaseModel):
    """Mirrors chatguard.security.audit_log.AuditEntry."""

    id: str
    timestamp: str
    adminId: str
    action: str
    userId: str
    reason: str = ""
    level: Optional[int] = None
