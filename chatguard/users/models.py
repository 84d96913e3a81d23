"""User domain models: the participant record and its restriction sub-documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class Ban:
    """Indefinite restriction; lifted only by unban or reinstatement."""

    is_banned: bool = True
    reason: str = ""
    timestamp: str = ""


@dataclass
class Quarantine:
    """Time-bounded restriction. ``end_time`` is ``start_time`` plus the level's window.

    ``end_time`` is None only for a damaged record stored without one.
    """

    is_quarantined: bool = True
    reason: str = ""
    level: int = 1
    start_time: str = ""
    end_time: Optional[str] = ""


@dataclass
class User:
    """A chat participant, keyed by an opaque id that is stable across reconnects."""

    id: str
    ip: str = ""
    country: Optional[str] = None
    connection_time: str = ""
    last_seen: str = ""
    connected: bool = False
    report_count: int = 0
    violations: int = 0
    quarantine: Optional[Quarantine] = None
    ban: Optional[Ban] = None
