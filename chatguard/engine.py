"""Composition root: owns the store handle and wires every component.

    with Engine.open(Settings.from_env()) as engine:
        engine.presence.register_or_refresh("u1", "203.0.113.7", "NL")
        engine.resolver.resolve("u1")

Nothing in the core caches a connection at module level; the store lives
exactly as long as the Engine that opened it.
"""

from __future__ import annotations

from typing import Optional

from chatguard.admin.dashboard import AdminDashboard
from chatguard.calls.tracker import CallTracker
from chatguard.clock import Clock, utcnow
from chatguard.config import QuarantinePolicy, Settings
from chatguard.logger import configure_logging, get_logger
from chatguard.moderation.engine import ModerationEngine
from chatguard.moderation.reinstatement import Reinstatement
from chatguard.moderation.resolver import StatusResolver
from chatguard.presence.registry import PresenceRegistry
from chatguard.reports.queue import ReportQueue
from chatguard.security.audit_log import AuditLogger
from chatguard.store.base import DocumentStore
from chatguard.store.factory import open_store
from chatguard.users.repository import UserRepository

log = get_logger("engine")


class Engine:
    """All chatguard components bound to one DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        policy: Optional[QuarantinePolicy] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store
        self.policy = policy or QuarantinePolicy()
        clock = clock or utcnow

        self.users = UserRepository(store)
        self.audit = AuditLogger(store, clock)
        self.resolver = StatusResolver(self.users, clock)
        self.moderation = ModerationEngine(self.users, self.policy, self.audit, clock)
        self.reinstatement = Reinstatement(store, self.moderation, clock)
        self.calls = CallTracker(store, clock)
        self.reports = ReportQueue(
            store, self.users, self.resolver, self.moderation, self.policy, clock
        )
        self.presence = PresenceRegistry(self.users, clock)
        self.dashboard = AdminDashboard(
            self.users,
            self.resolver,
            self.presence,
            self.calls,
            self.reports,
            self.reinstatement,
            self.policy,
        )
        self._closed = False

    @classmethod
    def open(cls, settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> "Engine":
        """Configure logging, open the configured store and build the engine."""
        settings = settings or Settings.from_env()
        configure_logging(settings.log_level, settings.log_file)
        policy = settings.load_policy()
        store = open_store(settings)
        log.info("Engine opened with %s store", settings.store)
        return cls(store, policy, clock)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.store.close()
        log.info("Engine closed")

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
