"""Unit tests for Settings helpers and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import load_config
from src.config.settings import DEV_AUTH_SECRET, Settings
from src.main import STALE_JOB_MARGIN_SECONDS, build_components, create_app
from src.utils.errors import ConfigurationError

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "config.yaml"


def _settings(**overrides) -> Settings:
    defaults = {"openai_api_key": "", "anthropic_api_key": ""}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def test_defaults():
    settings = _settings()
    assert settings.storage_provider == "filesystem"
    assert settings.sse_adapter == "memory"
    assert settings.worker_enabled is True


def test_available_llm_providers_order():
    assert _settings().get_available_llm_providers() == []
    both = _settings(openai_api_key="sk-test", anthropic_api_key="ak-test")
    assert both.get_available_llm_providers() == ["anthropic", "openai"]


def test_cors_origins():
    assert _settings().get_cors_origins() == ["*"]
    settings = _settings(cors_origins="https://a.example, https://b.example ,")
    assert settings.get_cors_origins() == ["https://a.example", "https://b.example"]


def test_load_config_reads_yaml_sections():
    config = load_config(str(CONFIG_PATH), settings=_settings())
    assert config["research"]["max_poll_minutes"] == 60
    assert config["sse"]["channel_prefix"] == "content-studio:sse:"
    assert config["infographics"]["selection_soft_limit"] == 10


def test_load_config_merges_env_values():
    config = load_config(str(CONFIG_PATH), settings=_settings(sse_adapter="redis", openai_api_key="sk-x"))
    assert config["sse"]["adapter"] == "redis"
    assert config["sse"]["keepalive_seconds"] == 15
    assert config["llm"]["available_providers"] == ["openai"]


def test_load_config_without_file(tmp_path):
    config = load_config(str(tmp_path / "missing.yaml"), settings=_settings())
    assert config["app"]["port"] == 8000
    assert "research" not in config


# ─── Production checks ────────────────────────────────────────────


def test_production_rejects_default_auth_secret():
    with pytest.raises(ConfigurationError, match="AUTH_SECRET"):
        _settings(app_env="production").check_production_ready()
    with pytest.raises(ConfigurationError):
        _settings(app_env="production", auth_secret="").check_production_ready()


def test_production_accepts_real_secret():
    _settings(app_env="production", auth_secret="s3cr3t-from-vault").check_production_ready()


def test_development_allows_default_secret():
    settings = _settings()
    assert settings.auth_secret == DEV_AUTH_SECRET
    settings.check_production_ready()


def test_create_app_refuses_default_secret_in_production():
    with pytest.raises(ConfigurationError):
        create_app(_settings(app_env="production"))


def test_worker_stale_age_outlasts_research_polling():
    settings = _settings()
    config = load_config(str(CONFIG_PATH), settings=settings)
    assert settings.worker_stale_job_seconds > config["research"]["max_poll_minutes"] * 60
    assert config["worker"]["max_concurrent"] == settings.worker_max_concurrent


def test_build_components_raises_short_stale_age(tmp_path):
    settings = _settings(database_path=str(tmp_path / "s.db"), storage_provider="memory", worker_stale_job_seconds=60)

    worker = build_components(settings)["worker"]

    assert worker._stale_job_seconds == 60 * 60 + STALE_JOB_MARGIN_SECONDS
