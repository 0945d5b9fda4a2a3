"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  (static defaults checked into the repo)
#   2. .env file           (local developer overrides, not committed)
#   3. Environment vars    (set at deploy time)
#
# ``load_config()`` reads the YAML file first, then deep-merges the
# environment-derived values from :class:`Settings` on top.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides: dict[str, Any] = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "storage": {
            "provider": settings.storage_provider,
            "base_path": settings.storage_base_path,
        },
        "sse": {
            "adapter": settings.sse_adapter,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "worker": {
            "enabled": settings.worker_enabled,
            "poll_interval_seconds": settings.worker_poll_interval_seconds,
            "stale_job_seconds": settings.worker_stale_job_seconds,
            "max_concurrent": settings.worker_max_concurrent,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
