"""
api/main.py -- FastAPI application entry point for Taskboard.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. log_requests            -- method, path, status, latency, client address
  2. security_headers        -- nosniff / frame deny / no-referrer on every response
  3. BodySizeLimitMiddleware -- 413 when the body (declared or chunked) exceeds
                                Settings.max_body_bytes
  4. TrustedHostMiddleware   -- rejects requests with unexpected Host headers
  5. CORSMiddleware          -- adds CORS headers for allowed browser origins
  6. SlowAPIMiddleware       -- per-address rate limits from api.limiter

The body-size cap and the rate limit both run before any route handler, so
oversized or over-quota requests never reach business logic.

Lifespan opens the database, builds both stores on the one handle, runs the
admin bootstrap synchronously, and closes the handle on shutdown.
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.admin import router as admin_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.tasks import router as tasks_router
from auth.store import UserStore
from core.config import get_settings
from core.database import Database
from core.errors import InternalError, PayloadTooLarge, TaskboardError, ValidationFailed
from tasks.store import TaskStore

__version__ = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskboard.api")


# ---------------------------------------------------------------------------
# Admin bootstrap
# ---------------------------------------------------------------------------


def bootstrap_admin(user_store: UserStore) -> None:
    """Create the configured admin account if it does not exist yet.

    Runs synchronously during startup, before the first request is served.
    Skipped when ADMIN_EMAIL or ADMIN_PASSWORD is unset.
    """
    if not (_settings.admin_email and _settings.admin_password):
        logger.info("No bootstrap admin configured (ADMIN_EMAIL / ADMIN_PASSWORD unset)")
        return
    created = user_store.ensure_admin(_settings.admin_name, _settings.admin_email, _settings.admin_password)
    if not created:
        logger.info("Bootstrap admin already present, skipping")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Startup order: database, stores, admin bootstrap.
    """
    logger.info("Taskboard API starting up")
    app.state.db = Database(_settings.database_url)
    app.state.user_store = UserStore(app.state.db)
    app.state.task_store = TaskStore(app.state.db)
    bootstrap_admin(app.state.user_store)
    logger.info("Database initialized")

    yield

    app.state.db.close()
    logger.info("Taskboard API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Taskboard API",
    description="Task management with token authentication and role-based access.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the app built so far, so the LAST registration is
# the outermost layer. SlowAPI is registered first so it sits innermost,
# right in front of the routes.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


def _domain_error_response(err: TaskboardError) -> JSONResponse:
    return _error_response(err.status_code, err.code, err.message, err.detail)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than Settings.max_body_bytes with 413.

    A declared Content-Length is checked before anything is read. A body
    without one (chunked transfer) is read up to the cap before the app sees
    it, then replayed to the app in one message. Reading stops at the first
    chunk past the cap.

    Plain ASGI rather than @app.middleware("http"): the body has to be
    intercepted at the receive channel.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = _settings.max_body_bytes
        declared = Headers(scope=scope).get("content-length")
        if declared is not None:
            if not declared.isdigit():
                await _domain_error_response(ValidationFailed("Invalid Content-Length header."))(scope, receive, send)
            elif int(declared) > limit:
                await _domain_error_response(PayloadTooLarge())(scope, receive, send)
            else:
                await self.app(scope, receive, send)
            return

        chunks: list[bytes] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away before finishing the body.
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > limit:
                await _domain_error_response(PayloadTooLarge())(scope, receive, send)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)


app.add_middleware(BodySizeLimitMiddleware)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    return response


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time is captured around call_next so latency is
# reported on every response.
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

app.include_router(auth_router, prefix="/api/v1", tags=["Authentication"])
app.include_router(tasks_router, prefix="/api/v1", tags=["Tasks"])
app.include_router(admin_router, prefix="/api/v1", tags=["Admin"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(TaskboardError)
async def domain_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    """Map a domain error to its fixed status and code."""
    return _domain_error_response(exc)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc.detail))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the offending fields when body, path or query fail validation.

    Only field locations and messages are echoed back, never the input values,
    so a rejected password does not appear in the response.
    """
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}" for err in exc.errors()
    )
    err = ValidationFailed()
    return _error_response(err.status_code, err.code, err.message, problems)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured errors for framework HTTP exceptions (unknown route, wrong method)."""
    code = "not_found" if exc.status_code == 404 else f"http_{exc.status_code}"
    return _error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is logged server-side only, never written to the
    response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    err = InternalError()
    return _error_response(err.status_code, err.code, err.message)


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. Exempt from rate limiting --
# health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["Health"])
@app.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
@limiter.exempt
def health(request: Request) -> HealthResponse:
    """Return liveness, version and database reachability."""
    db_ok = request.app.state.db.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
