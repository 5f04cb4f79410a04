"""
CMS Portfolio Backend API
=========================

FastAPI service for the parts of the CMS that need a trusted server:
password resolution, admin-only bulk imports, AI summaries, view analytics
and health.

Routers
-------
- backend.routes.auth  : /auth/login, /auth/code-version, /auth/admin/verify
- backend.routes.admin : /admin/* (requires the x-admin-code header)

Error mapping
-------------
Domain errors from `core.errors` are translated once, here:
ValidationError -> 400, AuthenticationError -> 401, BackendError -> 502.

Run with:  uvicorn backend.main:app --reload
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.routes.admin import router as admin_router
from backend.routes.auth import router as auth_router
from core.errors import AuthenticationError, BackendError, ValidationError
from core.health import system_health
from core.logging_config import configure_logging
from core.metadata import __project__, __version__, get_metadata

configure_logging()
logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# FastAPI App
# --------------------------------------------------------------------------- #

app = FastAPI(
    title=f"{__project__} API",
    version=__version__,
    description=(
        "Backend for the CMS portfolio dashboard.\n"
        "- Password resolution and code-version checks.\n"
        "- Admin bulk imports for issues and stock metrics.\n"
        "- AI timeline summaries and portfolio view analytics."
    ),
)

app.include_router(auth_router)
app.include_router(admin_router)


# --------------------------------------------------------------------------- #
# Error handlers
# --------------------------------------------------------------------------- #

@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(AuthenticationError)
async def _authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    logger.info("[Backend] auth rejected on %s", request.url.path)
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(BackendError)
async def _backend_error(request: Request, exc: BackendError) -> JSONResponse:
    logger.error("[Backend] %s on %s", exc, request.url.path)
    return JSONResponse(status_code=502, content={"detail": f"{exc.action} failed"})


# --------------------------------------------------------------------------- #
# Status endpoints
# --------------------------------------------------------------------------- #

@app.get("/")
def root() -> Dict[str, Any]:
    return {**get_metadata(), "status": "running"}


@app.get("/health")
def health() -> Dict[str, Any]:
    return system_health()
