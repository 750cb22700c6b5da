"""
Typed settings for the pick battle worker service.

Uses Pydantic Settings to load configuration from environment variables
with validation and type safety. For local development settings are also
read from the repository-root .env file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate_env import validate_env


class StatsProviderConfig(BaseModel):
    """MySportsFeeds box score provider settings."""

    base_url: str = Field(default="https://api.mysportsfeeds.com/v2.1/pull/nba")
    # "current" resolves to the in-progress season on the provider side
    season: str = "current"
    api_key: str | None = None
    request_timeout_seconds: int = 15
    # Polite polling: jitter between box score requests within one tick
    min_request_delay: float = 1.0
    max_request_delay: float = 2.0
    max_calls_per_cycle: int = 30
    rate_limit_backoff_seconds: int = 60


class BattleConfig(BaseModel):
    sport: str = "nba"
    # Real-time minutes per quarter, including timeouts and breaks
    minutes_per_quarter: int = 18
    # Extra wait after the estimated quarter end before polling stats
    quarter_buffer_minutes: int = 5
    starting_hp: int = 100
    quarter_sync_crontab_minute: str = "*/5"
    matchmaking_crontab_minute: str = "*/30"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    In Docker, environment variables are passed directly via docker-compose.
    For local development, loads from the root .env file. All settings are
    validated by Pydantic.
    """
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="allow",
    )

    database_url: str = Field(..., alias="DATABASE_URL")

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_async_to_sync(cls, v: str) -> str:
        """
        Convert asyncpg URL to psycopg URL for synchronous SQLAlchemy.

        Celery workers use synchronous sessions, so an asyncpg DATABASE_URL
        shared with other services is rewritten here.
        """
        if isinstance(v, str) and "asyncpg" in v:
            return v.replace("asyncpg", "psycopg")
        return v

    redis_url: str = Field("redis://localhost:6379/3", alias="REDIS_URL")
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_password: str | None = Field(None, alias="REDIS_PASSWORD")
    redis_db: int = Field(3, alias="REDIS_DB")

    @model_validator(mode="after")
    def _build_redis_url(self) -> Settings:
        """
        Build Redis URL from components if REDIS_HOST is set to a non-localhost value.
        This handles Docker environments where REDIS_HOST=redis and REDIS_PASSWORD are passed separately.
        """
        if self.redis_host != "localhost":
            if self.redis_password:
                self.redis_url = f"redis://:{self.redis_password}@{self.redis_host}:6379/{self.redis_db}"
            else:
                self.redis_url = f"redis://{self.redis_host}:6379/{self.redis_db}"
        return self

    mysportsfeeds_api_key: str | None = Field(None, alias="MYSPORTSFEEDS_API_KEY")
    mysportsfeeds_season: str | None = Field(None, alias="MYSPORTSFEEDS_SEASON")
    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    stats_config: StatsProviderConfig = Field(default_factory=StatsProviderConfig)
    battle_config: BattleConfig = Field(default_factory=BattleConfig)

    @model_validator(mode="after")
    def _apply_provider_overrides(self) -> Settings:
        """
        Allow top-level env vars (MYSPORTSFEEDS_API_KEY / MYSPORTSFEEDS_SEASON)
        to populate the nested provider config without double-underscore syntax.
        """
        if self.mysportsfeeds_api_key:
            self.stats_config.api_key = self.mysportsfeeds_api_key
        if self.mysportsfeeds_season:
            self.stats_config.season = self.mysportsfeeds_season
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Settings are cached to avoid re-parsing environment variables
    on every access.
    """
    validate_env()
    return Settings()


# Global settings instance - import this in other modules
settings = get_settings()
