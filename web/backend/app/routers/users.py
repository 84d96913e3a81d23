"""Users router -- presence registration, connection pings, status gate, payments."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from chatguard.engine import Engine
from web.backend.app.middleware.auth import get_engine
from web.backend.app.models.api import (
    ActionResponse,
    ConnectionRequest,
    PaymentRequest,
    PaymentResponse,
    RegisterRequest,
    StatusResponse,
)

router = APIRouter(prefix="/api", tags=["users"])


@router.post("/users/register", response_model=ActionResponse, summary="Register or refresh a user")
async def register_user(body: RegisterRequest, engine: Engine = Depends(get_engine)):
    """Create the user on first sight, otherwise refresh ip, country and last-seen."""
    _, created = engine.presence.register_or_refresh(body.id, body.ip, body.country)
    message = "User registered" if created else "User updated"
    return ActionResponse(success=True, message=message)


@router.post("/users/connection", response_model=ActionResponse, summary="Connection ping")
async def update_connection(body: ConnectionRequest, engine: Engine = Depends(get_engine)):
    engine.presence.set_connection(body.userId, body.status == "connected")
    return ActionResponse(success=True)


@router.get(
    "/users/status",
    response_model=StatusResponse,
    response_model_exclude_none=True,
    summary="Eligibility gate",
)
async def user_status(userId: str = Query(""), engine: Engine = Depends(get_engine)):
    """Effective ban / quarantine status; lapsed quarantines read as free."""
    return StatusResponse(**engine.resolver.resolve(userId).as_gate())


@router.post("/payment", response_model=PaymentResponse, summary="Record a reinstatement payment")
async def record_payment(body: PaymentRequest, engine: Engine = Depends(get_engine)):
    payment = engine.reinstatement.record_payment(body.userId, body.amount, body.reason)
    return PaymentResponse(success=True, paymentId=payment.id)
