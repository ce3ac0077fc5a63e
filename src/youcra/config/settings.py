"""Application settings loaded from environment variables and config files."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, SecretStr
from pydantic.networks import PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

from youcra.config import CONFIG_ROOT


class LogFilterConfig(BaseModel):
    """Console messages that should never reach the terminal."""

    contains: List[str] = Field(default_factory=list)
    patterns: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def _load_log_filters(filter_path: Path) -> LogFilterConfig:
    if not filter_path.exists():
        return LogFilterConfig()

    raw_data = yaml.safe_load(filter_path.read_text(encoding="utf-8")) or {}
    return LogFilterConfig(
        contains=list(raw_data.get("contains") or []),
        patterns=list(raw_data.get("patterns") or []),
    )


class Settings(BaseSettings):
    """Primary application settings for YouCra."""

    database_url: Optional[PostgresDsn] = Field(default=None, alias="DATABASE_URL")
    database_pool_max_connections: PositiveInt = Field(default=5, alias="DATABASE_POOL_MAX_CONNECTIONS")
    youtube_api_key: Optional[SecretStr] = Field(default=None, alias="YOUTUBE_API_KEY")
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".youcra", alias="YOUCRA_DATA_DIR")

    metadata_timeout_seconds: PositiveFloat = Field(default=10.0, alias="METADATA_TIMEOUT_SECONDS")
    rewatch_cooldown_seconds: PositiveInt = Field(default=3600, alias="REWATCH_COOLDOWN_SECONDS")
    long_video_threshold_seconds: PositiveInt = Field(default=1800, alias="LONG_VIDEO_THRESHOLD_SECONDS")
    watch_history_limit: PositiveInt = Field(default=10, alias="WATCH_HISTORY_LIMIT")
    tick_interval_seconds: PositiveFloat = Field(default=1.0, alias="TICK_INTERVAL_SECONDS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    log_filters: LogFilterConfig = Field(default_factory=lambda: _load_log_filters(CONFIG_ROOT / "log_filters.yaml"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()


__all__ = ["LogFilterConfig", "Settings", "get_settings"]
