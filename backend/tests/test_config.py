from __future__ import annotations

import pytest

from paper_api import config
from paper_api.config import get_settings

_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "PORT",
    "CACHE_ENABLED",
    "CACHE_TTL",
    "CACHE_CHECK_PERIOD",
    "CACHE_BACKEND",
    "RATE_LIMIT_ENABLED",
    "RATE_LIMIT_WINDOW_MS",
    "RATE_LIMIT_MAX_REQUESTS",
    "MIRROR_BASE_URL",
    "HTTP_MAX_RETRIES",
    "CORS_ALLOW_ORIGINS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "_ENV_LOADED", True)
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = get_settings()

    assert settings.env == "development"
    assert settings.port == 3000
    assert settings.cache_enabled is False
    assert settings.cache_ttl_seconds == 86_400
    assert settings.cache_backend == "memory"
    assert settings.rate_limit_enabled is True
    assert settings.rate_limit_window_ms == 60_000
    assert settings.rate_limit_max_requests == 10
    assert settings.mirror_base_url == "https://sci-hub.ru/"
    assert settings.metadata_base_url == "https://api.crossref.org/works/"
    assert settings.cors_allow_origins == ("*",)
    assert settings.is_production is False


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "Production")
    monkeypatch.setenv("CACHE_ENABLED", "true")
    monkeypatch.setenv("CACHE_TTL", "600")
    monkeypatch.setenv("CACHE_BACKEND", "sql")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "25")
    monkeypatch.setenv("HTTP_MAX_RETRIES", "0")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example,")

    settings = get_settings()

    assert settings.is_production is True
    assert settings.cache_enabled is True
    assert settings.cache_ttl_seconds == 600
    assert settings.cache_backend == "sql"
    assert settings.rate_limit_max_requests == 25
    assert settings.http_max_retries == 0
    assert settings.cors_allow_origins == ("https://a.example", "https://b.example")


def test_invalid_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("LOG_LEVEL", "warn")
    monkeypatch.setenv("LOG_FORMAT", "xml")
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setenv("CACHE_TTL", "-5")
    monkeypatch.setenv("CACHE_BACKEND", "redis")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "nope")

    settings = get_settings()

    assert settings.env == "development"
    assert settings.log_level == "warning"
    assert settings.log_format == "text"
    assert settings.port == 3000
    assert settings.cache_ttl_seconds == 86_400
    assert settings.cache_backend == "memory"
    assert settings.rate_limit_enabled is False


def test_explicit_zero_is_kept_where_allowed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_TTL", "0")
    monkeypatch.setenv("CACHE_CHECK_PERIOD", "0")
    monkeypatch.setenv("HTTP_MAX_RETRIES", "0")
    monkeypatch.setenv("RATE_LIMIT_MAX_REQUESTS", "0")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_MS", "0")
    monkeypatch.setenv("PORT", "0")

    settings = get_settings()

    assert settings.cache_ttl_seconds == 0
    assert settings.cache_check_period_seconds == 0
    assert settings.http_max_retries == 0
    assert settings.rate_limit_max_requests == 10
    assert settings.rate_limit_window_ms == 60_000
    assert settings.port == 3000
