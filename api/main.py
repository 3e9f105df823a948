"""
api/main.py -- FastAPI application entry point for LeetShare auth.

Run with:  uvicorn asgi:app --reload

Startup:
  Settings are loaded at import time through get_settings(). A missing or
  weak JWT_SECRET raises there, before the app object exists, so a
  misconfigured process never serves a request [S1].

Middleware stack (outermost to innermost):
  1. CORSMiddleware       -- adds CORS headers for ALLOWED_ORIGINS
  2. body size limit      -- rejects oversized requests with 413
  3. security headers     -- nosniff, frame deny, XSS filter, referrer policy,
                             HSTS, CSP, permissions policy
  4. request logging

Rate limits are applied per route by slowapi decorators (api/limiter.py).

Lifespan builds the services once and hangs them on app.state; every request
shares the same instances.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.errors import AuthenticationError, InternalError
from auth.oauth import GitHubLogin, build_oauth_registry
from auth.oauth_state import OAuthStateGuard
from auth.passwords import CredentialService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

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
logger = logging.getLogger("leetshare.api")

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the shared services on startup and release the DB on shutdown.

    The services are the only owners of their state (signing secret, CSRF
    table); routes reach them through request.app.state.
    """
    logger.info("LeetShare auth API starting up")
    app.state.tokens = TokenService(_settings.jwt_secret)
    app.state.credentials = CredentialService()
    app.state.oauth_states = OAuthStateGuard()
    app.state.user_store = UserStore(_settings.database_url)
    app.state.github = GitHubLogin(build_oauth_registry(_settings), _settings.github_redirect_uri)
    logger.info("Auth services initialized (github_enabled=%s)", app.state.github.enabled)

    yield

    app.state.user_store.close()
    logger.info("LeetShare auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="LeetShare Auth API",
    description="Accounts, sessions and GitHub login for the LeetShare problem-sharing service.",
    version=VERSION,
    lifespan=lifespan,
)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Middleware stack
#
# @app.middleware("http") functions wrap in reverse order of definition: the
# last one defined runs first. add_middleware() is always outermost here
# because it is called last.
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


@app.middleware("http")
async def security_headers(request: Request, call_next):
    """Attach defensive response headers to every response."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
    response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none'; base-uri 'self'"
    response.headers["Permissions-Policy"] = "interest-cohort=()"
    return response


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """Reject requests whose declared Content-Length exceeds MAX_BODY_BYTES."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > _settings.max_body_bytes:
        return JSONResponse(
            status_code=413,
            content=ErrorResponse(
                error=ErrorDetail(code="payload_too_large", message="Request body too large.")
            ).model_dump(),
        )
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    allow_credentials=True,
)

# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])

# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Return one indistinguishable 401 for every authentication failure.

    The reason (bad token, wrong password, expired state, ...) is logged for
    operators and deliberately left out of the response body.
    """
    logger.warning("Authentication failed on %s %s: %s", request.method, request.url.path, exc.reason)
    return JSONResponse(
        status_code=401,
        content=ErrorResponse(
            error=ErrorDetail(code="unauthorized", message="Authentication required.")
        ).model_dump(),
        headers={"WWW-Authenticate": "Bearer", "Cache-Control": "no-store"},
    )


@app.exception_handler(InternalError)
async def internal_error_handler(request: Request, exc: InternalError) -> JSONResponse:
    logger.error("Internal auth error on %s %s: %s", request.method, request.url.path, exc.reason)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(code="internal_error", message="An unexpected error occurred.")
        ).model_dump(),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait: the length of the
    limit's window, which is the worst case.
    """
    limit = getattr(exc, "limit", None)
    retry_after = limit.limit.get_expiry() if limit is not None else 60
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc.detail),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation.

    Only the field locations and messages are echoed; submitted values (which
    may include a password) are not.
    """
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=problems,
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail={"code": ..., "message": ...}.
    When detail is already a structured dict, use it directly as the error field.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No rate limit -- health checks from load balancers must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
