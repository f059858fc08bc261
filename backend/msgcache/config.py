"""Store Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden by an MSGCACHE_* environment variable
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out of the box for a local single-node store
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Message store settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MSGCACHE_", env_file=".env", case_sensitive=False,
        extra="ignore",
    )

    # Storage
    cache_file: str = "cache.db"
    cache_busy_timeout_ms: int = Field(5000, ge=0)

    # Retention: published messages older than this are pruned
    cache_duration_seconds: int = Field(12 * 60 * 60, ge=0)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("cache_file")
    @classmethod
    def strip_cache_file(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cache_file cannot be empty")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
