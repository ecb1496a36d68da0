"""
api/main.py -- FastAPI host for the LearnLite auth core.

Mounts the gate pipeline as route dependencies and renders every rejection
and error as the shared envelope:

    {"ok": false, "error": {"code", "message", "requestId", "timestamp"}}

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests  -- one line per request with latency and request id
  2. assign_request_id -- sets request.state.request_id and X-Request-ID

create_app() builds the immutable AuthConfig from Settings once and stores
the TokenCodec and CredentialHasher on app.state. Gates and routes receive
them from there, never from module globals.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.dependencies import GateRejected
from auth.hashing import CredentialHasher
from auth.pipeline import Rejection
from auth.tokens import TokenCodec
from core.config import Settings, get_settings

VERSION = "1.2.0"

logger = logging.getLogger("learnlite.api")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    rejection = Rejection(status_code=status_code, code=code, message=message, request_id=_request_id(request))
    return JSONResponse(status_code=status_code, content=rejection.to_body())


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same envelope so API clients can parse errors
# uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def gate_rejected_handler(request: Request, exc: GateRejected) -> JSONResponse:
    """Write the response a gate decided on. The pipeline has already halted."""
    rejection = exc.rejection
    headers = {"WWW-Authenticate": "Bearer"} if rejection.status_code == 401 else None
    return JSONResponse(status_code=rejection.status_code, content=rejection.to_body(), headers=headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(request, 422, "VALIDATION_ERROR", "Request validation failed.")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _error(request, 404, "NOT_FOUND", f"Route {request.method} {request.url.path} not found")
    return _error(request, exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    Starlette runs this handler outside the middleware stack, so the
    X-Request-ID header is set here rather than by assign_request_id.
    """
    request_id = _request_id(request)
    logger.exception("[%s] Unhandled exception on %s %s 500", request_id, request.method, request.url.path)
    response = _error(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the ASGI app. Tests pass their own Settings; production reads the env."""
    settings = settings or get_settings()
    config = settings.auth_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("%s auth API starting up %s", settings.app_name, settings.redacted_summary())
        yield
        logger.info("%s auth API shutdown complete", settings.app_name)

    app = FastAPI(
        title="LearnLite Auth API",
        description="Credential hashing, bearer tokens and role gates for LearnLite.",
        version=VERSION,
        lifespan=lifespan,
    )

    # Process-wide, immutable after this point.
    app.state.auth_config = config
    app.state.token_codec = TokenCodec(config.secret_key, config.token_ttl_seconds)
    app.state.hasher = CredentialHasher(config.work_factor)

    # ------------------------------------------------------------------
    # Middleware. The last registration is the outermost layer, so
    # log_requests sees the X-Request-ID header assign_request_id sets.
    # ------------------------------------------------------------------

    @app.middleware("http")
    async def assign_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "[%s] %s %s %d %.1fms",
            response.headers.get("X-Request-ID", "unknown"),
            request.method,
            request.url.path,
            response.status_code,
            ms,
        )
        return response

    app.add_exception_handler(GateRejected, gate_rejected_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])

    @app.get("/api/v1/health", tags=["Health"])
    async def health() -> HealthResponse:
        """Return API liveness and current version."""
        return HealthResponse(version=VERSION)

    return app
