"""
Configuration Management

Centralized configuration using Pydantic Settings. Every setting can be
overridden with a RESULTSET_* environment variable or a .env file.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings."""

    model_config = SettingsConfigDict(
        env_prefix="RESULTSET_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Compilation
    default_dialect: str = "sqlite"
    default_paramstyle: Optional[str] = None
    default_alias: str = "me"

    # Execution
    fetch_size: int = Field(default=100, ge=1)

    # Observability
    trace: bool = False
    log_level: str = "WARNING"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Re-read settings from the environment and replace the global instance."""
    global settings
    settings = Settings()
    return settings
