"""
CSV Query Service Configuration Module.

Handles all application settings and environment configuration.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoaderSettings(BaseSettings):
    """CSV source and initialization settings."""

    model_config = SettingsConfigDict(env_prefix="LOADER_")

    csv_path: str = Field(default="public/orders.csv", description="CSV file loaded by /api/init")
    table_name: str = Field(default="orders", description="Destination table for the CSV rows")
    batch_size: int = Field(default=1000, ge=1, description="Rows per prepared-statement batch")
    auto_init: bool = Field(
        default=True,
        description="Load the CSV in the background at startup when the file is present",
    )
    poll_interval_seconds: float = Field(
        default=0.1,
        gt=0,
        description="Upper bound on how long a waiting caller sleeps between state checks",
    )
    wait_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Give up waiting on another caller's load after this long (None = wait forever)",
    )


class QuerySettings(BaseSettings):
    """Query execution settings."""

    model_config = SettingsConfigDict(env_prefix="QUERY_")

    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Interrupt statements running longer than this (None = no limit)",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=3001, validation_alias="PORT")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    static_dir: str = Field(default="public", description="Directory served as static files at /")

    # Nested settings
    loader: LoaderSettings = Field(default_factory=LoaderSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
