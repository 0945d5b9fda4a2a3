"""Content Studio API layer: routers, schemas, dependencies and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
)
from src.api.routers import ALL_ROUTERS
from src.api.schemas import ErrorResponse, HealthResponse, JobStartedResponse

__all__ = [
    "ALL_ROUTERS",
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "JobStartedResponse",
    "RateLimitMiddleware",
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "configure_cors",
]
