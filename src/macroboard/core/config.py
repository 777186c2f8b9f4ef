"""Configuration management for MacroBoard.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once at
startup and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MACROBOARD_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = Field(default=False, description="Log at DEBUG level regardless of log_level")

    # Query Engine Settings
    database_path: str = Field(
        default=":memory:",
        description="DuckDB database file, or :memory: for a process-local database",
    )
    threads: int | None = Field(
        default=None,
        description="DuckDB worker threads (None lets DuckDB decide)",
    )

    # Catalog Settings
    catalog_path: str | None = Field(
        default=None,
        description="Default compiled catalog document used by the CLI",
    )

    # Table Lifecycle Settings
    auto_bind_on_load: bool = True
    table_fallback_name: str = "table"

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @field_validator("threads")
    @classmethod
    def validate_threads(cls, v: int | None) -> int | None:
        """Reject non-positive thread counts."""
        if v is not None and v < 1:
            raise ValueError("threads must be a positive integer")
        return v

    @field_validator("table_fallback_name")
    @classmethod
    def validate_fallback_name(cls, v: str) -> str:
        """Fallback table names must be usable as bare SQL identifiers."""
        if not v or not v.replace("_", "a").isalnum() or v[0].isdigit():
            raise ValueError("table_fallback_name must be a simple SQL identifier")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded once; call ``get_settings.cache_clear()`` to force
    a reload (tests do this after patching the environment).

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
