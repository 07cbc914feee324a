"""
Typed settings for the hoop-sync worker.

Uses Pydantic Settings to load configuration from environment variables
with validation and type safety. Settings are loaded from the root .env
file when present so local development and containers share one source.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate_env import validate_env


class ScheduleProviderConfig(BaseModel):
    """Quota-limited provider for schedules, teams, rosters and player search."""

    base_url: str = Field(default="https://api.balldontlie.io")
    api_key: str | None = None
    request_timeout_seconds: float = 30.0
    # Hard per-minute quota: at most one request every 2 seconds
    min_request_interval_seconds: float = 2.0
    # Penalty recorded on a 429 before any caller may try again
    quota_cooldown_seconds: float = 70.0
    max_attempts: int = 2
    # Backoff before retry N is retry_backoff_seconds * N (30s, 60s)
    retry_backoff_seconds: float = 30.0
    # Extra cooldown once retries are exhausted
    exhausted_penalty_seconds: float = 120.0
    page_size: int = 25


class StatsProviderConfig(BaseModel):
    """Box score, game log and season/career statistics provider."""

    site_base_url: str = Field(default="https://site.api.espn.com/apis/site/v2/sports/basketball/nba")
    core_base_url: str = Field(default="https://sports.core.api.espn.com/v2/sports/basketball/leagues/nba")
    web_base_url: str = Field(default="https://site.web.api.espn.com/apis/common/v3/sports/basketball/nba")
    search_url: str = Field(default="https://site.web.api.espn.com/apis/search/v2")
    request_timeout_seconds: float = 30.0
    # Not quota-limited, but slow and flaky: retry 3 times, 2s/4s backoff
    min_request_interval_seconds: float = 0.0
    quota_cooldown_seconds: float = 30.0
    max_attempts: int = 3
    retry_backoff_seconds: float = 2.0
    exhausted_penalty_seconds: float = 0.0
    # Pinned positional layout for the game log endpoint
    gamelog_schema_version: str = "v1"


class CacheTTLConfig(BaseModel):
    """Cache durations in seconds, per domain."""

    today_games: int = 300
    games_by_date: int = 900
    past_games: int = 3600
    future_games: int = 1800
    live_games: int = 120
    all_teams: int = 86400
    single_team: int = 7200
    player: int = 3600
    players_by_team: int = 1800
    players_search: int = 900
    player_stats: int = 900
    season_stats: int = 3600
    career_stats: int = 86400
    season_leaders: int = 3600
    game_leaders: int = 900
    default: int = 900
    memory_enabled: bool = True
    redis_enabled: bool = True
    key_prefix: str = "hoop"


class SyncJobConfig(BaseModel):
    future_days: int = Field(default=7)
    past_days: int = Field(default=1)
    expected_team_count: int = Field(default=30)
    recent_games_to_sync: int = Field(default=5)
    # Lines held under the recent-games key; larger requests are capped to it
    recent_games_window: int = Field(default=25)
    game_sync_lock_seconds: int = Field(default=600)
    stats_sync_lock_seconds: int = Field(default=1800)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    In containers, environment variables are passed directly. For local
    development the root .env file is read when it exists. Nested provider
    and cache sections keep their defaults unless overridden.
    """
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="allow",
    )

    database_url: str = Field(..., alias="DATABASE_URL")

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_async_to_sync(cls, v: str) -> str:
        """
        Convert an asyncpg URL to psycopg for synchronous SQLAlchemy.

        Lets the worker share a DATABASE_URL with async API services.
        """
        if isinstance(v, str) and "asyncpg" in v:
            return v.replace("asyncpg", "psycopg")
        return v

    redis_url: str = Field("redis://localhost:6379/2", alias="REDIS_URL")
    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_password: str | None = Field(None, alias="REDIS_PASSWORD")
    redis_db: int = Field(2, alias="REDIS_DB")

    @model_validator(mode="after")
    def _build_redis_url(self) -> Settings:
        """Build the Redis URL from components when REDIS_HOST is not localhost."""
        if self.redis_host != "localhost":
            if self.redis_password:
                self.redis_url = f"redis://:{self.redis_password}@{self.redis_host}:6379/{self.redis_db}"
            else:
                self.redis_url = f"redis://{self.redis_host}:6379/{self.redis_db}"
        return self

    balldontlie_api_key: str | None = Field(None, alias="BALLDONTLIE_API_KEY")
    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    schedule_provider: ScheduleProviderConfig = Field(default_factory=ScheduleProviderConfig)
    stats_provider: StatsProviderConfig = Field(default_factory=StatsProviderConfig)
    cache_config: CacheTTLConfig = Field(default_factory=CacheTTLConfig)
    sync_config: SyncJobConfig = Field(default_factory=SyncJobConfig)
    cache_redis_enabled_override: bool | None = Field(None, alias="CACHE_REDIS_ENABLED")

    @model_validator(mode="after")
    def _apply_overrides(self) -> Settings:
        """
        Copy top-level env vars into the nested sections so BALLDONTLIE_API_KEY
        and CACHE_REDIS_ENABLED work without double-underscore syntax.
        """
        if self.balldontlie_api_key and not self.schedule_provider.api_key:
            self.schedule_provider.api_key = self.balldontlie_api_key
        if self.cache_redis_enabled_override is not None:
            self.cache_config.redis_enabled = bool(self.cache_redis_enabled_override)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Environment variables do not change during runtime, so parsing once
    is enough.
    """
    validate_env()
    return Settings()


settings = get_settings()
