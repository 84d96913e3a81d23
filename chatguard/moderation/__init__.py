"""Moderation: access status resolution and administrator actions.

- StatusResolver: effective ban / quarantine state with lazy expiry
- ModerationEngine: idempotent ban, unban, quarantine, unquarantine
- Reinstatement: recorded payments that lift a restriction
"""
