"""Reinstatement: record a completed payment and lift the matching restriction.

No payment processing happens here; the payment is taken as already settled.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from chatguard.clock import Clock, to_iso, utcnow
from chatguard.errors import InvalidArgument, require_id
from chatguard.logger import get_logger
from chatguard.moderation.engine import ModerationEngine
from chatguard.store.base import PAYMENTS, DocumentStore

log = get_logger("moderation.reinstatement")

PAYMENT_REASONS = ("unquarantine", "unban", "other")


@dataclass
class Payment:
    id: str
    user_id: str
    amount: float
    timestamp: str
    status: str = "completed"
    reason: str = "other"


def _payment_to_dict(p: Payment) -> dict:
    return {
        "id": p.id,
        "userId": p.user_id,
        "amount": p.amount,
        "timestamp": p.timestamp,
        "status": p.status,
        "reason": p.reason,
    }


def _payment_from_dict(d: dict) -> Payment:
    return Payment(
        id=d["id"],
        user_id=d.get("userId", ""),
        amount=d.get("amount", 0),
        timestamp=d.get("timestamp", ""),
        status=d.get("status", "completed"),
        reason=d.get("reason", "other"),
    )


class Reinstatement:
    def __init__(
        self,
        store: DocumentStore,
        moderation: ModerationEngine,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._moderation = moderation
        self._clock = clock or utcnow

    def record_payment(self, user_id: str, amount: float, reason: str) -> Payment:
        """Store a completed payment; ``unban`` / ``unquarantine`` also clear that restriction."""
        user_id = require_id(user_id, "userId")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            raise InvalidArgument("amount must be a positive number")
        if reason not in PAYMENT_REASONS:
            raise InvalidArgument(f"reason must be one of {', '.join(PAYMENT_REASONS)}")

        payment = Payment(
            id=f"payment-{uuid.uuid4()}",
            user_id=user_id,
            amount=amount,
            timestamp=to_iso(self._clock()),
            reason=reason,
        )
        self._store.insert_one(PAYMENTS, _payment_to_dict(payment))
        log.info("Payment %s of %s recorded for %s (%s)", payment.id, amount, user_id, reason)

        if reason == "unquarantine":
            self._moderation.unquarantine(user_id, admin_id="payment", reason=payment.id)
        elif reason == "unban":
            self._moderation.unban(user_id, admin_id="payment", reason=payment.id)
        return payment

    def list_payments(self, user_id: Optional[str] = None) -> list[Payment]:
        query = {"userId": user_id} if user_id else None
        return [_payment_from_dict(d) for d in self._store.find(PAYMENTS, query)]
