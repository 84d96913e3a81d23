"""Admin dashboard queries: headline stats and filtered user listings.

Restriction counts go through the StatusResolver so lapsed quarantines are
neither counted nor listed (and get cleared on the way).
"""

from __future__ import annotations

from dataclasses import dataclass

from chatguard.calls.tracker import CallTracker
from chatguard.config import QuarantinePolicy
from chatguard.errors import InvalidArgument
from chatguard.moderation.reinstatement import Reinstatement
from chatguard.moderation.resolver import StatusResolver
from chatguard.presence.registry import PresenceRegistry
from chatguard.reports.queue import ReportQueue
from chatguard.users.models import User
from chatguard.users.repository import UserRepository

USER_FILTERS = ("all", "active", "online", "banned", "quarantined")


@dataclass
class DashboardStats:
    total_users: int = 0
    active_users: int = 0
    banned_users: int = 0
    quarantined_users: int = 0
    pending_reports: int = 0
    total_reports: int = 0
    active_calls: int = 0
    total_payments: int = 0
    revenue_total: float = 0.0


class AdminDashboard:
    def __init__(
        self,
        users: UserRepository,
        resolver: StatusResolver,
        presence: PresenceRegistry,
        calls: CallTracker,
        reports: ReportQueue,
        reinstatement: Reinstatement,
        policy: QuarantinePolicy,
    ) -> None:
        self._users = users
        self._resolver = resolver
        self._presence = presence
        self._calls = calls
        self._reports = reports
        self._reinstatement = reinstatement
        self._policy = policy

    def list_users(self, filter: str = "all") -> list[User]:
        """Users matching ``filter`` (all | active | online | banned | quarantined)."""
        if filter not in USER_FILTERS:
            raise InvalidArgument(f"Unknown user filter '{filter}'")
        if filter == "active":
            return self._presence.connected_users()
        if filter == "online":
            return self._presence.online_users(self._policy.online_window_seconds)

        users = self._users.list()
        if filter == "banned":
            return [u for u in users if self._resolver.resolve_user(u).banned]
        if filter == "quarantined":
            return [u for u in users if self._resolver.resolve_user(u).quarantined]
        return users

    def stats(self) -> DashboardStats:
        users = self._users.list()
        statuses = [self._resolver.resolve_user(u) for u in users]
        reports = self._reports.list("all")
        payments = self._reinstatement.list_payments()
        completed = [p for p in payments if p.status == "completed"]
        return DashboardStats(
            total_users=len(users),
            active_users=sum(1 for u in users if u.connected),
            banned_users=sum(1 for s in statuses if s.banned),
            quarantined_users=sum(1 for s in statuses if s.quarantined),
            pending_reports=sum(1 for r in reports if r.status.value == "pending"),
            total_reports=len(reports),
            active_calls=len(self._calls.list_active()),
            total_payments=len(payments),
            revenue_total=float(sum(p.amount for p in completed)),
        )
