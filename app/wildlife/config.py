import os
from dataclasses import dataclass

from app.wildlife.constants import IMAGE_CACHE_TTL, MIN_SECRET_KEY_LENGTH, SESSION_TTL

DEV_SECRET_KEY = "dev-only-insecure-secret-do-not-use-in-production"


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    redis_url: str

    image_cache_ttl: int
    session_ttl: int
    force_https: bool
    csrf_enabled: bool
    app_version: str

    openai_api_key: str
    openai_model: str

    placeholder_not_found_url: str
    placeholder_error_url: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _getflag(name: str, default: bool) -> bool:
    raw = _getenv(name).lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///wildlife.db"),
        redis_url=_getenv("REDIS_URL", ""),
        image_cache_ttl=_getint("IMAGE_CACHE_TTL", IMAGE_CACHE_TTL),
        session_ttl=_getint("SESSION_TTL", SESSION_TTL),
        force_https=_getflag("FORCE_HTTPS", False),
        csrf_enabled=_getflag("CSRF_ENABLED", True),
        app_version=_getenv("APP_VERSION", "dev"),
        openai_api_key=_getenv("OPENAI_API_KEY", ""),
        openai_model=_getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
        placeholder_not_found_url=_getenv(
            "PLACEHOLDER_NOT_FOUND_URL",
            "https://placehold.co/400x300/3498db/ffffff?text=Image+Not+Found",
        ),
        placeholder_error_url=_getenv(
            "PLACEHOLDER_ERROR_URL",
            "https://placehold.co/400x300/e74c3c/ffffff?text=Error",
        ),
    )


def is_production(env: str) -> bool:
    return (env or "").strip().lower() in ("prod", "production")


def validate_settings(s: Settings) -> None:
    """
    Fail fast on configuration that must never reach a production deploy.
    Outside production only the database URL is required.
    """
    if not s.database_url:
        raise RuntimeError("DATABASE_URL is required.")
    if not is_production(s.env):
        return
    if s.database_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
    if len(s.secret_key) < MIN_SECRET_KEY_LENGTH:
        raise RuntimeError(
            f"SECRET_KEY must be set and at least {MIN_SECRET_KEY_LENGTH} characters in production "
            f"(current length: {len(s.secret_key)})."
        )


def load_config() -> dict:
    s = load_settings()
    validate_settings(s)
    return {
        "SECRET_KEY": s.secret_key or DEV_SECRET_KEY,
        "SECRET_KEY_IS_DEFAULT": not s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "REDIS_URL": s.redis_url,
        "IMAGE_CACHE_TTL": s.image_cache_ttl,
        "SESSION_TTL": s.session_ttl,
        "CSRF_ENABLED": s.csrf_enabled,
        "APP_VERSION": s.app_version,
        "OPENAI_API_KEY": s.openai_api_key,
        "OPENAI_MODEL": s.openai_model,
        "PLACEHOLDER_NOT_FOUND_URL": s.placeholder_not_found_url,
        "PLACEHOLDER_ERROR_URL": s.placeholder_error_url,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": s.force_https,
        # image uploads (10MB)
        "MAX_CONTENT_LENGTH": 10 * 1024 * 1024,
    }
