"""
api/main.py -- FastAPI application entry point for the boilerplate.

Exposes the Session Store and the User-Extension Records over HTTP so the
server-rendered web UI and the async client SDK share one backend.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for the site origin
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (stores, hook wiring, session purge task) and
shutdown (cancel purge task, close DB connections) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.openapi.docs import get_redoc_html, get_swagger_ui_html
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.records import router as records_router
from auth.dependencies import get_current_identity
from auth.errors import AuthError, BoilerplateError, NotAuthenticatedError, NotFoundError, ValidationError
from auth.hooks import LifecycleHooks
from auth.models import Identity
from auth.service import SessionService
from auth.store import UserStore
from core.config import get_settings
from records import handlers as record_handlers
from records.store import RecordStore

VERSION = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("boilerplate.api")

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Delete expired and revoked session rows every 6 hours.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly.
    """
    while True:
        await asyncio.sleep(6 * 60 * 60)
        removed = app.state.user_store.purge_expired_sessions()
        logger.info("Purged %d stale sessions", removed)


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def init_state(app: FastAPI, user_store: UserStore, records: RecordStore) -> None:
    """Attach stores to app.state and connect the lifecycle hooks.

    Shared by the real lifespan and the test lifespan so both wire the
    records handlers to the Session Store the same way.
    """
    hooks = LifecycleHooks()
    record_handlers.register(hooks, records)
    app.state.user_store = user_store
    app.state.records = records
    app.state.hooks = hooks
    app.state.session_service = SessionService(user_store, hooks, _settings.token_expire_seconds)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Stores come first because the purge task references them.
    """
    logger.info("Boilerplate API starting up (deployment=%s)", _settings.deployment_id)
    init_state(app, UserStore(_settings.auth_database_url), RecordStore(_settings.records_database_url))
    logger.info("Session Store initialized (%d accounts)", app.state.user_store.count_users())
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    app.state.user_store.close()
    app.state.records.close()
    logger.info("Boilerplate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Fullstack Boilerplate API",
    description="Session management and per-user records for the boilerplate web app.",
    version=VERSION,
    lifespan=lifespan,
    # Auth-protected equivalents are registered below.
    docs_url=None,
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS -> SlowAPI.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=[_settings.site_host, "localhost", "127.0.0.1", "*.localhost"],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[_settings.site_url, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(records_router, prefix="/api/v1", tags=["Records"])
# Web UI router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Auth-protected API documentation
# ---------------------------------------------------------------------------


@app.get("/docs", include_in_schema=False)
async def docs(identity: Identity = Depends(get_current_identity)):
    """Swagger UI -- requires authentication."""
    return get_swagger_ui_html(openapi_url="/openapi.json", title="Fullstack Boilerplate API")


@app.get("/redoc", include_in_schema=False)
async def redoc(identity: Identity = Depends(get_current_identity)):
    """ReDoc UI -- requires authentication."""
    return get_redoc_html(openapi_url="/openapi.json", title="Fullstack Boilerplate API")


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves the API in the same ErrorResponse envelope:
#   {"error": {"code": ..., "message": ..., "detail": ...}}
# message is always safe to show to the user verbatim.
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR: dict[type, int] = {
    ValidationError: 400,
    AuthError: 400,
    NotAuthenticatedError: 401,
    NotFoundError: 404,
}


def _error_response(
    status_code: int,
    code: str,
    message: str,
    detail: str | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@app.exception_handler(BoilerplateError)
async def domain_error_handler(request: Request, exc: BoilerplateError) -> JSONResponse:
    """Map handler-level errors to HTTP. The message is passed through verbatim."""
    status = next((s for cls, s in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400)
    return _error_response(status, exc.code, exc.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with Retry-After so the SDK and browsers know when to try again."""
    retry_after = int(getattr(exc, "retry_after", 60))
    return _error_response(
        429,
        "rate_limited",
        "Too many attempts. Please wait a minute and try again.",
        detail=str(exc),
        headers={"Retry-After": str(retry_after)},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body or query params failed the pydantic models in api/models.py."""
    return _error_response(422, "validation_error", "Request validation failed.", detail=str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Routes raise HTTPException with a {"code", "message"} dict; pass it through as the error."""
    headers = getattr(exc, "headers", None)
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=headers)
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail), headers=headers)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unexpected: logged with traceback, reported without internals."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# No rate limit applied -- health checks from load balancers and monitoring
# systems must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness, version, and the deployment this process serves."""
    return HealthResponse(version=VERSION, deployment_id=_settings.deployment_id)
