"""
Application settings.

Values come from environment variables prefixed with ``REDLIST_EXPLORER_``
(or a local ``.env`` file). The IUCN credential is also read from the bare
``RED_LIST_API_KEY`` variable, which is what the snapshot tooling uses.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the API and CLI."""

    model_config = SettingsConfigDict(
        env_prefix="REDLIST_EXPLORER_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "redlist-explorer"
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Directory holding redlist-*.json snapshots and gbif-*.csv occurrence tables
    data_dir: Path = Path("data")

    api_host: str = "127.0.0.1"
    api_port: int = 8000

    red_list_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("RED_LIST_API_KEY", "REDLIST_EXPLORER_RED_LIST_API_KEY"),
    )

    snapshot_reload_seconds: float = 3600.0
    detail_cache_ttl_seconds: float = 3600.0

    # Scatter/gather limits for provider fan-out
    provider_timeout_seconds: float = Field(default=15.0, gt=0)
    fanout_max_workers: int = Field(default=12, ge=1)

    # 0 keeps the no-retry behaviour; anything above enables urllib3 retries
    http_retries: int = Field(default=0, ge=0)

    listing_max_limit: int = Field(default=1000, ge=1)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
