"""Calls router -- call session start and end from the signaling path."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from chatguard.engine import Engine
from web.backend.app.middleware.auth import get_engine
from web.backend.app.models.api import CallResponse, EndCallRequest, TrackCallRequest
from web.backend.app.serializers import call_response

router = APIRouter(prefix="/api/calls", tags=["calls"])


@router.post(
    "/track",
    response_model=CallResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start tracking a call",
)
async def track_call(body: TrackCallRequest, engine: Engine = Depends(get_engine)):
    """Open a call session. A repeated start for the same call id returns 409."""
    return call_response(engine.calls.start_call(body.callId, body.user1Id, body.user2Id))


@router.post("/end", response_model=CallResponse, summary="End a call")
async def end_call(body: EndCallRequest, engine: Engine = Depends(get_engine)):
    """Close a call session. Safe to retry: an ended call is returned unchanged."""
    return call_response(engine.calls.end_call(body.callId, body.reason))
