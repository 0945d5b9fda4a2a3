"""API middleware: CORS, request logging, security headers, rate limiting, errors.

# ─── MIDDLEWARE EXECUTION ORDER ──────────────────────────────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)     # added 1st → innermost
#     app.add_middleware(RateLimitMiddleware)         # added 2nd
#     app.add_middleware(SecurityHeadersMiddleware)   # added 3rd
#     app.add_middleware(RequestLoggingMiddleware)    # added 4th
#     configure_cors(app)                             # added last → outermost
#
#   Request flow:
#     Client → CORS → RequestLogging → SecurityHeaders → RateLimit
#            → ErrorHandling → route handler
#
# RequestLoggingMiddleware therefore sees the final status code, including
# a 429 from the limiter and the one ErrorHandlingMiddleware chose for a
# domain error.  Rejected requests still get the security headers.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
import time
import uuid
from collections.abc import Callable, Iterable

import structlog
from cachetools import TTLCache
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from src.api.schemas import ErrorResponse
from src.utils.errors import ContentStudioError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware.  Credentials are allowed so the session cookie travels."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the request and log method, path, status and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )
            structlog.contextvars.unbind_contextvars("request_id")


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``ContentStudioError`` subclasses into ``{"error", "detail"}`` JSON.

    The status code and error code come from the exception class.  Server
    errors (5xx) are logged at error level, client errors at info.
    Anything that is not a ContentStudioError falls through to FastAPI's
    default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ContentStudioError as exc:
            log = _logger.error if exc.status_code >= 500 else _logger.info
            log(
                "application_error",
                error_type=type(exc).__name__,
                code=exc.code,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(error=exc.code, detail=exc.message)
            return JSONResponse(status_code=exc.status_code, content=body.model_dump())


SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Referrer-Policy": "no-referrer",
    "X-XSS-Protection": "0",
    # Generated audio and images are embedded by other origins.
    "Cross-Origin-Resource-Policy": "cross-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Set the standard hardening headers on every response a route has not set itself."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def client_ip(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limit per client key.

    Counters live in a ``cachetools.TTLCache`` whose TTL is the window, so
    a client's entry disappears when its window ends.  Every response
    carries ``X-RateLimit-Limit``, ``X-RateLimit-Remaining`` and
    ``X-RateLimit-Reset`` (epoch seconds); a request over the limit gets
    429 with ``Retry-After``.

    Parameters
    ----------
    limit:
        Requests allowed per window.
    window_seconds:
        Window length.
    key_func:
        Maps a request to its counter key; defaults to :func:`client_ip`.
    exempt_paths:
        Paths that are neither counted nor limited.
    timer:
        Monotonic clock shared with the cache, replaceable in tests.
    """

    def __init__(
        self,
        app: ASGIApp,
        limit: int = 300,
        window_seconds: float = 60,
        key_func: Callable[[Request], str] = client_ip,
        exempt_paths: Iterable[str] = ("/api/health",),
        max_clients: int = 10_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self._limit = max(1, limit)
        self._window = window_seconds
        self._key_func = key_func
        self._exempt = frozenset(exempt_paths)
        self._timer = timer
        # key → [count, window_ends_at]; mutated in place so the TTL is not refreshed
        self._windows: TTLCache[str, list[float]] = TTLCache(
            maxsize=max_clients, ttl=window_seconds, timer=timer
        )

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in self._exempt or request.method == "OPTIONS":
            return await call_next(request)

        key = self._key_func(request)
        now = self._timer()
        window = self._windows.get(key)
        if window is None:
            window = [0, now + self._window]
            self._windows[key] = window
        window[0] += 1

        count, ends_at = window
        remaining = max(0, self._limit - int(count))
        reset_in = max(1, math.ceil(ends_at - now))
        headers = {
            "X-RateLimit-Limit": str(self._limit),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(math.ceil(time.time() + reset_in)),
        }
        if count > self._limit:
            _logger.warning("rate_limited", client=key, path=str(request.url.path))
            body = ErrorResponse(error="RATE_LIMITED", detail="Too many requests")
            return JSONResponse(
                status_code=429,
                content=body.model_dump(),
                headers={**headers, "Retry-After": str(reset_in)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
