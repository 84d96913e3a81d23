"""chatguard — moderation and session-state engine for stranger video chat.

The package provides:
- Status resolution: effective ban / quarantine state with lazy expiry
- Moderation: idempotent ban, unban, quarantine and unquarantine actions
- Call tracking: lifecycle of pairwise call sessions
- Reports: user-submitted reports and their triage status
- Presence: connection and last-seen tracking
"""

__version__ = "0.1.0"
