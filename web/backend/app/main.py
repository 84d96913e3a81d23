"""FastAPI application for the chatguard moderation service.

Provides REST API endpoints wrapping the chatguard engine for:
- Presence registration and connection pings
- The ban / quarantine eligibility gate used by matchmaking
- Call session tracking
- User reports and reinstatement payments
- Admin moderation actions, report triage and live monitoring
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

# Ensure the chatguard package is importable by adding the project root to sys.path.
_project_root = str(Path(__file__).resolve().parents[3])
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatguard import __version__
from chatguard.config import Settings
from chatguard.engine import Engine
from chatguard.errors import (
    ChatguardError,
    Conflict,
    InvalidArgument,
    NotFound,
    TransientStoreFailure,
)
from chatguard.logger import get_logger
from web.backend.app.routers import admin, calls, reports, users

log = get_logger("web")

_STATUS_BY_ERROR = [
    (InvalidArgument, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (TransientStoreFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def create_app(
    engine: Optional[Engine] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the application.

    With ``engine`` given the app uses it as-is and leaves closing it to the
    caller; otherwise an Engine is opened from ``settings`` (or the
    environment) on startup and closed on shutdown.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "engine", None) is None:
            owned = Engine.open(settings)
            app.state.engine = owned
        try:
            yield
        finally:
            if owned is not None:
                owned.close()
                app.state.engine = None

    app = FastAPI(
        title="chatguard API",
        description=(
            "REST API for the chatguard moderation and session-state engine. "
            "Provides endpoints for presence, eligibility checks, call tracking, "
            "reports and administrator moderation."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.admin_token = settings.admin_token

    # -----------------------------------------------------------------------
    # CORS middleware (allow all origins for development)
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Engine errors -> HTTP status codes
    # -----------------------------------------------------------------------
    @app.exception_handler(ChatguardError)
    async def engine_error_handler(request: Request, exc: ChatguardError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        for error_type, mapped in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                code = mapped
                break
        if code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=code, content={"error": str(exc)})

    # -----------------------------------------------------------------------
    # Include routers
    # -----------------------------------------------------------------------
    app.include_router(users.router)
    app.include_router(calls.router)
    app.include_router(reports.router)
    app.include_router(admin.router)

    # -----------------------------------------------------------------------
    # Root and health-check endpoints
    # -----------------------------------------------------------------------

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "chatguard API",
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
