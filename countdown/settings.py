"""Runtime configuration resolved from ``COUNTDOWN_*`` environment variables."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingLevel(str, Enum):
    CRITICAL = "CRITICAL"
    DEBUG = "DEBUG"
    ERROR = "ERROR"
    INFO = "INFO"
    WARNING = "WARNING"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="countdown_log_")

    app_level: LoggingLevel = LoggingLevel.INFO
    sys_level: LoggingLevel = LoggingLevel.WARNING


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="countdown_")

    data_dir: Path = Path(".countdown")
    events_key: str = "savedEvents"
    widget_timeline_limit: int = Field(default=1440, gt=0)
    widget_step_minutes: int = Field(default=1, gt=0)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
