"""
Process settings, read from environment variables once at startup.

The resulting `Settings` is immutable and passed explicitly: `create_app`
stores it on `app.state.settings` and routes reach it through `get_settings`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from fastapi import Request

APP_VERSION = "2.0.0"


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    port: int = 4000
    environment: str = "development"
    database_url: str = ""
    db_query_timeout: float = 3.0
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    limiter_rps: float = 2.0
    limiter_burst: int = 4
    limiter_enabled: bool = True
    cors_trusted_origins: tuple[str, ...] = field(default_factory=tuple)
    max_body_bytes: int = 256_000
    log_level: str = "INFO"
    version: str = APP_VERSION


def load_settings() -> Settings:
    return Settings(
        port=_env_int("PORT", 4000),
        environment=_env_str("ENVIRONMENT", "development"),
        database_url=os.environ.get("DATABASE_URL", "").strip(),
        db_query_timeout=_env_float("DB_QUERY_TIMEOUT", 3.0),
        db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
        db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
        limiter_rps=_env_float("LIMITER_RPS", 2.0),
        limiter_burst=_env_int("LIMITER_BURST", 4),
        limiter_enabled=_env_bool("LIMITER_ENABLED", True),
        # Space separated, e.g. "http://localhost:5173 http://127.0.0.1:5173".
        cors_trusted_origins=tuple(os.environ.get("CORS_TRUSTED_ORIGINS", "").split()),
        max_body_bytes=_env_int("MAX_BODY_BYTES", 256_000),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
