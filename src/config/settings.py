"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. Environment variables, e.g. OPENAI_API_KEY=sk-abc123
#   2. A ``.env`` file in the working directory (local development)
#
# Field ``storage_provider`` maps to env var ``STORAGE_PROVIDER``;
# pydantic-settings matches names case-insensitively.  Defaults apply when
# neither source sets a field.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.errors import ConfigurationError

DEV_AUTH_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    """Content Studio application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === App ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = ""  # comma-separated; empty means "*"

    # === Rate limiting (per client IP, fixed window) ===
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 300
    rate_limit_window_seconds: int = 60

    # === Database ===
    database_path: str = "data/content_studio.db"

    # === Auth ===
    auth_secret: str = DEV_AUTH_SECRET
    auth_session_ttl_hours: int = 168

    # === Storage ===
    # One of: filesystem | s3 | database | memory
    storage_provider: str = "filesystem"
    storage_base_path: str = "data/storage"
    storage_base_url: str = "/storage"
    s3_bucket: str = ""
    s3_region: str = "us-east-1"
    s3_endpoint_url: str = ""  # MinIO / R2 / other S3-compatible endpoints
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_public_url: str = ""

    # === Real-time events ===
    # One of: memory | redis
    sse_adapter: str = "memory"
    redis_url: str = "redis://localhost:6379/0"

    # === AI providers ===
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = ""
    openai_tts_model: str = ""
    openai_image_model: str = ""
    openai_research_model: str = ""
    anthropic_api_key: str = ""

    # === Worker ===
    worker_enabled: bool = True
    worker_poll_interval_seconds: float = 2.0
    worker_max_concurrent: int = 4
    worker_shutdown_timeout_seconds: float = 10.0
    # Must outlast the research polling cap (research.max_poll_minutes).
    worker_stale_job_seconds: int = 4500
    worker_stale_check_every: int = 30

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        return providers

    def get_cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]

    def check_production_ready(self) -> None:
        """Refuse to start in production with development-only secrets.

        Raises
        ------
        ConfigurationError
            If ``APP_ENV=production`` and ``AUTH_SECRET`` is unset or left
            at the development default.
        """
        if self.app_env.lower() != "production":
            return
        if not self.auth_secret or self.auth_secret == DEV_AUTH_SECRET:
            raise ConfigurationError(
                message="AUTH_SECRET must be set to a non-default value when APP_ENV=production"
            )
