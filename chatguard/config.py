"""Runtime settings and the quarantine policy table.

Settings come from environment variables. The quarantine policy (level to
duration mapping, auto-quarantine threshold) may be overridden by a YAML file::

    durations:
      1: 300
      2: 1800
      3: 10800
    report_threshold: 3
    max_auto_level: 3
    online_window_seconds: 300
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

import yaml

from chatguard.errors import InvalidArgument

DEFAULT_DURATIONS: dict[int, int] = {
    1: 5 * 60,
    2: 30 * 60,
    3: 3 * 60 * 60,
}

DEFAULT_REASON = "Violation of terms"


@dataclass
class QuarantinePolicy:
    """Severity table for quarantines plus report-driven thresholds."""

    durations: dict[int, int] = field(default_factory=lambda: dict(DEFAULT_DURATIONS))
    report_threshold: int = 3
    max_auto_level: int = 3
    online_window_seconds: int = 300

    def __post_init__(self) -> None:
        if not self.durations:
            raise InvalidArgument("Quarantine policy needs at least one level")
        durations = {int(k): int(v) for k, v in self.durations.items()}
        previous = 0
        for level in sorted(durations):
            if level < 1:
                raise InvalidArgument(f"Quarantine level must be >= 1, got {level}")
            if durations[level] <= previous:
                raise InvalidArgument(
                    "Quarantine durations must be positive and strictly increasing by level"
                )
            previous = durations[level]
        self.durations = durations
        if self.report_threshold < 1:
            raise InvalidArgument("report_threshold must be >= 1")
        if self.max_auto_level < 1:
            raise InvalidArgument("max_auto_level must be >= 1")

    def duration_for(self, level: int) -> timedelta:
        """Return the quarantine window for ``level``.

        Levels past the top of the table use the longest configured window.
        """
        if isinstance(level, bool) or not isinstance(level, int) or level < 1:
            raise InvalidArgument(f"Quarantine level must be a positive integer, got {level!r}")
        eligible = [lvl for lvl in self.durations if lvl <= level]
        if not eligible:
            # Below the lowest configured level: use the shortest window
            return timedelta(seconds=self.durations[min(self.durations)])
        return timedelta(seconds=self.durations[max(eligible)])


def load_policy(path: str | Path) -> QuarantinePolicy:
    """Load a quarantine policy from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return QuarantinePolicy(
        durations=data.get("durations") or dict(DEFAULT_DURATIONS),
        report_threshold=int(data.get("report_threshold", 3)),
        max_auto_level=int(data.get("max_auto_level", 3)),
        online_window_seconds=int(data.get("online_window_seconds", 300)),
    )


@dataclass
class Settings:
    """Process settings, normally built with :meth:`from_env`."""

    store: str = "json"  # memory | json | mongo
    data_dir: str = ""
    mongodb_uri: str = ""
    mongo_db: str = "videochat"
    policy_file: str = ""
    admin_token: str = ""
    log_level: str = "INFO"
    log_file: str = ""

    def __post_init__(self) -> None:
        if not self.data_dir:
            self.data_dir = str(Path.home() / ".chatguard" / "data")

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store=os.environ.get("CHATGUARD_STORE", "json").lower(),
            data_dir=os.environ.get("CHATGUARD_DATA_DIR", ""),
            mongodb_uri=os.environ.get("MONGODB_URI", ""),
            mongo_db=os.environ.get("CHATGUARD_MONGO_DB", "videochat"),
            policy_file=os.environ.get("CHATGUARD_POLICY_FILE", ""),
            admin_token=os.environ.get("CHATGUARD_ADMIN_TOKEN", ""),
            log_level=os.environ.get("CHATGUARD_LOG_LEVEL", "INFO"),
            log_file=os.environ.get("CHATGUARD_LOG_FILE", ""),
        )

    def load_policy(self) -> QuarantinePolicy:
        """Return the configured policy, or the default table."""
        if self.policy_file:
            return load_policy(self.policy_file)
        return QuarantinePolicy()
