"""
Configuration helpers for the mailroom backend.

Routers and services read the environment through `get_settings()` instead of
touching os.environ directly, so tests can swap values with monkeypatch and a
`get_settings.cache_clear()`.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    public_base_url: str
    database_url: str
    session_ttl_seconds: int
    allow_signup: bool
    min_password_length: int
    uploads_dir: str
    max_upload_bytes: int
    timezone: str
    customer_id_prefix: str
    log_level: str
    business_name: str


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    default_uploads = os.path.join(BASE_DIR, "web", "uploads")
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        database_url=os.getenv("DATABASE_URL", ""),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "604800"), 604800),
        allow_signup=_bool(os.getenv("ALLOW_SIGNUP"), True),
        min_password_length=max(1, _int(os.getenv("MIN_PASSWORD_LENGTH", "6"), 6)),
        uploads_dir=os.getenv("UPLOADS_DIR") or default_uploads,
        max_upload_bytes=_int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)), 10 * 1024 * 1024),
        timezone=os.getenv("APP_TIMEZONE", "Asia/Hong_Kong"),
        customer_id_prefix=(os.getenv("CUSTOMER_ID_PREFIX") or "C").strip().upper(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        business_name=os.getenv("BUSINESS_NAME", "生意仔有限公司"),
    )
