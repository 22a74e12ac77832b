"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="AnimeShelf", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    catalog_api_url: HttpUrl = Field(
        default="https://api.jikan.moe/v4", alias="CATALOG_API_URL"
    )
    catalog_timeout_seconds: float = Field(
        default=12.0, alias="CATALOG_TIMEOUT", ge=5.0, le=60.0
    )
    catalog_connect_timeout_seconds: float = Field(
        default=5.0, alias="CATALOG_CONNECT_TIMEOUT", gt=0.0, le=30.0
    )
    catalog_max_retries: int = Field(
        default=2, alias="CATALOG_MAX_RETRIES", ge=0, le=5
    )

    trending_limit: int = Field(default=10, alias="TRENDING_LIMIT", ge=1, le=25)
    search_limit: int = Field(default=20, alias="SEARCH_LIMIT", ge=1, le=25)
    recommendation_limit: int = Field(
        default=10, alias="RECOMMENDATION_LIMIT", ge=1, le=100
    )

    login_delay_seconds: float = Field(
        default=1.0, alias="LOGIN_DELAY_SECONDS", ge=0.0, le=10.0
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./animeshelf.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        """Accept log level names case-insensitively."""

        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("Unknown log level configured")
        return level

    @property
    def catalog_base_url(self) -> str:
        """Return the catalog API root without a trailing slash."""

        return str(self.catalog_api_url).rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
