from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    hybrid_mode: bool
    openai_api_key: str | None
    openai_base_url: str | None
    ai_provider: str
    ai_model: str
    ai_temperature: float
    ai_max_tokens: int
    ai_timeout_s: float
    coach_temperature: float
    coach_max_tokens: int
    jwt_secret: str | None
    jwt_algorithm: str
    auth_cookie_name: str
    database_path: str
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_credentials: bool
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    max_resume_chars: int

    @property
    def ai_credential_configured(self) -> bool:
        key = (self.openai_api_key or "").strip()
        return bool(key) and not _looks_like_placeholder(key)


def load_settings() -> Settings:
    return Settings(
        api_key=_get_env("API_KEY"),
        hybrid_mode=_get_env_bool("HYBRID_MODE", True),
        openai_api_key=_get_env("OPENAI_API_KEY"),
        openai_base_url=_get_env("OPENAI_BASE_URL"),
        ai_provider=(_get_env("AI_PROVIDER", "openai") or "openai").strip().lower(),
        ai_model=(_get_env("AI_MODEL", "gpt-4o-mini") or "gpt-4o-mini").strip(),
        ai_temperature=_get_env_float("AI_TEMPERATURE", 0.3),
        ai_max_tokens=_get_env_int("AI_MAX_TOKENS", 1500),
        ai_timeout_s=_get_env_float("AI_TIMEOUT_S", 60.0),
        coach_temperature=_get_env_float("COACH_TEMPERATURE", 0.7),
        coach_max_tokens=_get_env_int("COACH_MAX_TOKENS", 300),
        jwt_secret=_get_env("JWT_SECRET"),
        jwt_algorithm=_get_env("JWT_ALGORITHM", "HS256") or "HS256",
        auth_cookie_name=_get_env("AUTH_COOKIE_NAME", "token") or "token",
        database_path=_get_env("DATABASE_PATH", "data/resume_coach.db") or "data/resume_coach.db",
        rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        cors_allowed_origins=_get_env_list(
            "CORS_ALLOWED_ORIGINS",
            [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
            ],
        ),
        cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", True),
        analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
        analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
        analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 180),
        max_resume_chars=_get_env_int("MAX_RESUME_CHARS", 15000),
    )


settings = load_settings()

if settings.ai_provider != "openai":
    raise RuntimeError("AI_PROVIDER must be 'openai'.")
