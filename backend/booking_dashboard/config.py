"""Runtime settings loaded from the environment.

Call ``get_settings()`` anywhere; the instance is cached per process. Tests that
tweak the environment should call ``get_settings.cache_clear()`` afterwards.
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

_TRUTHY = {"1", "true", "TRUE", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite+pysqlite:///./local.db"
    service_name: str = "booking-dashboard"
    log_level: str = "INFO"
    secret_key: str = "dev-secret-change-me"
    cors_allow_origins: tuple = ("http://localhost:3000",)

    # Nylas (calendar vendor)
    nylas_api_key: Optional[str] = None
    nylas_api_uri: str = "https://api.us.nylas.com"
    nylas_client_id: Optional[str] = None
    nylas_timeout_seconds: float = 10.0

    # OAuth state store
    oauth_state_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"

    @property
    def nylas_configured(self) -> bool:
        return bool(self.nylas_api_key and self.nylas_client_id)

    def validate(self) -> List[str]:
        errors: List[str] = []
        if self.oauth_state_backend not in {"memory", "redis"}:
            errors.append(f"OAUTH_STATE_BACKEND invalid: {self.oauth_state_backend}")
        if self.nylas_timeout_seconds <= 0:
            errors.append("NYLAS_TIMEOUT_SECONDS must be positive")
        return errors


def _split_origins(raw: Optional[str]) -> tuple:
    if not raw:
        return Settings.cors_allow_origins
    return tuple(o.strip() for o in raw.split(",") if o.strip())


def load_dotenv_if_enabled() -> None:
    """Opt-in .env loading (APP_LOAD_DOTENV). Existing env always wins."""
    if os.getenv("APP_LOAD_DOTENV") not in _TRUTHY:
        return
    from dotenv import load_dotenv

    load_dotenv(override=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    defaults = Settings()
    timeout_raw = os.getenv("NYLAS_TIMEOUT_SECONDS")
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        service_name=os.getenv("SERVICE_NAME", defaults.service_name),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        secret_key=os.getenv("SECRET_KEY", defaults.secret_key),
        cors_allow_origins=_split_origins(os.getenv("CORS_ALLOW_ORIGINS")),
        nylas_api_key=os.getenv("NYLAS_API_KEY") or None,
        nylas_api_uri=os.getenv("NYLAS_API_URI", defaults.nylas_api_uri).rstrip("/"),
        nylas_client_id=os.getenv("NYLAS_CLIENT_ID") or None,
        nylas_timeout_seconds=float(timeout_raw) if timeout_raw else defaults.nylas_timeout_seconds,
        oauth_state_backend=os.getenv("OAUTH_STATE_BACKEND", defaults.oauth_state_backend).lower(),
        redis_url=os.getenv("REDIS_URL", defaults.redis_url),
    )
