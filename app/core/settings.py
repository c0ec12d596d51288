"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import dataclasses
import os
from functools import lru_cache


@dataclasses.dataclass(frozen=True)
class Settings:
    """Process-wide gateway configuration."""

    port: int = 4000
    host: str = "0.0.0.0"
    app_env: str = "production"
    database_url: str | None = None
    db_schema: str | None = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: float = 30.0
    cors_origins: tuple[str, ...] = ("*",)
    rate_limit: str | None = None

    @property
    def expose_error_details(self) -> bool:
        """Whether failure envelopes may carry the normalized error map."""
        return self.app_env.strip().lower() != "production"


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment with defaults for development."""

    return Settings(
        port=int(os.getenv("PORT", "4000")),
        host=os.getenv("HOST", "0.0.0.0"),
        app_env=os.getenv("APP_ENV", "production"),
        database_url=os.getenv("DATABASE_URL") or None,
        db_schema=os.getenv("DB_SCHEMA") or None,
        pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
        pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS", "*")) or ("*",),
        rate_limit=os.getenv("RATE_LIMIT") or None,
    )


def reset_settings_cache() -> None:
    """Clear cached settings; useful in tests when env vars change."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
