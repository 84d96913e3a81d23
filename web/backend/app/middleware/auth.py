"""Request dependencies -- engine access and administrator authentication.

Admin endpoints accept ``Authorization: Bearer <token>`` where the token is
the configured ``CHATGUARD_ADMIN_TOKEN``. Issuing tokens is handled outside
this service. An optional ``X-Admin-Id`` header names the acting
administrator in the audit trail.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from chatguard.engine import Engine


def get_engine(request: Request) -> Engine:
    """Return the Engine owned by the application."""
    return request.app.state.engine


async def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    x_admin_id: Optional[str] = Header(None, alias="X-Admin-Id"),
) -> str:
    """FastAPI dependency that validates the admin bearer token.

    Returns the acting administrator id. Raises ``401 Unauthorized`` when the
    token is missing or wrong, or when no admin token is configured at all.
    """
    expected = getattr(request.app.state, "admin_token", "") or ""
    if authorization and expected:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token and hmac.compare_digest(token, expected):
            return (x_admin_id or "admin").strip() or "admin"

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
