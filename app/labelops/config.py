import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    page_limit_default: int
    page_limit_max: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///labelops.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        page_limit_default=_getenv_int("PAGE_LIMIT_DEFAULT", 10),
        page_limit_max=_getenv_int("PAGE_LIMIT_MAX", 100),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "PAGE_LIMIT_DEFAULT": s.page_limit_default,
        "PAGE_LIMIT_MAX": s.page_limit_max,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # JSON bodies only; nothing here uploads files
        "MAX_CONTENT_LENGTH": 2 * 1024 * 1024,
    }
