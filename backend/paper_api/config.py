from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


_ENV_LOADED = False


def _load_env_file() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return

    # Resolve project backend root: backend/paper_api/config.py -> backend/
    backend_root = Path(__file__).resolve().parents[1]
    load_dotenv(backend_root / ".env", override=False)
    _ENV_LOADED = True


@dataclass(frozen=True)
class Settings:
    env: str
    log_level: str
    log_format: str
    host: str
    port: int
    cors_allow_origins: tuple[str, ...]
    cache_enabled: bool
    cache_ttl_seconds: int
    cache_check_period_seconds: int
    cache_backend: str
    database_url: str
    rate_limit_enabled: bool
    rate_limit_window_ms: int
    rate_limit_max_requests: int
    mirror_base_url: str
    metadata_base_url: str
    http_timeout_seconds: int
    http_max_retries: int
    http_user_agent: str

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except Exception:
        return default
    return value if value >= minimum else default


def _env_csv(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    values = [item.strip() for item in str(raw).split(",")]
    return tuple(item for item in values if item)


def _normalize_env(value: str | None) -> str:
    normalized = (value or "development").strip().lower()
    if normalized in {"development", "production", "test"}:
        return normalized
    return "development"


def _normalize_log_level(value: str | None) -> str:
    normalized = (value or "info").strip().lower()
    if normalized in {"debug", "info", "warning", "error", "critical"}:
        return normalized
    if normalized == "warn":
        return "warning"
    return "info"


def _normalize_log_format(value: str | None) -> str:
    normalized = (value or "text").strip().lower()
    if normalized in {"text", "json"}:
        return normalized
    return "text"


def _normalize_cache_backend(value: str | None) -> str:
    normalized = (value or "memory").strip().lower()
    if normalized in {"memory", "sql"}:
        return normalized
    return "memory"


def get_settings() -> Settings:
    _load_env_file()
    return Settings(
        env=_normalize_env(os.getenv("APP_ENV")),
        log_level=_normalize_log_level(os.getenv("LOG_LEVEL", "info")),
        log_format=_normalize_log_format(os.getenv("LOG_FORMAT", "text")),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", default=3000, minimum=1),
        cors_allow_origins=_env_csv("CORS_ALLOW_ORIGINS", "*"),
        cache_enabled=_env_bool("CACHE_ENABLED", default=False),
        cache_ttl_seconds=_env_int("CACHE_TTL", default=86_400),
        cache_check_period_seconds=_env_int("CACHE_CHECK_PERIOD", default=120),
        cache_backend=_normalize_cache_backend(os.getenv("CACHE_BACKEND", "memory")),
        database_url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./paper_cache.db"),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", default=True),
        rate_limit_window_ms=_env_int("RATE_LIMIT_WINDOW_MS", default=60_000, minimum=1),
        rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", default=10, minimum=1),
        mirror_base_url=os.getenv("MIRROR_BASE_URL", "https://sci-hub.ru/"),
        metadata_base_url=os.getenv("METADATA_BASE_URL", "https://api.crossref.org/works/"),
        http_timeout_seconds=_env_int("HTTP_TIMEOUT_SECONDS", default=20, minimum=1),
        http_max_retries=_env_int("HTTP_MAX_RETRIES", default=2),
        http_user_agent=os.getenv("HTTP_USER_AGENT", "doi-pdf-api/1.0"),
    )
