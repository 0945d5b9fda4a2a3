"""Utility modules for Content Studio.

- **errors** -- Domain exception hierarchy rooted at ContentStudioError;
  every subclass carries the machine-readable code and HTTP status the
  API error middleware reports.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **ids** -- Prefixed random ids and UTC timestamp helpers shared by the
  SQLite providers.
- **json_response** -- Lenient JSON extraction from LLM replies.
- **security** (not re-exported here) -- Password hashing and signed
  session tokens used by the auth service.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    ContentStudioError,
    ForbiddenError,
    NotFoundError,
    ProviderError,
    ValidationError,
)

# -- Ids and timestamps ----------------------------------------------------
from src.utils.ids import new_id, utc_now

# -- LLM reply parsing -----------------------------------------------------
from src.utils.json_response import parse_json_response

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ContentStudioError",
    "ForbiddenError",
    "NotFoundError",
    "ProviderError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "new_id",
    "parse_json_response",
    "utc_now",
]
