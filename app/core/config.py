"""
Application configuration settings.

Central configuration module using Pydantic BaseSettings with environment variable support.
Loads from .env file and environment variables.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import List, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if it exists (python-dotenv)
env_path = Path(".env")
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # App settings
    APP_NAME: str = "UniFi Config Auditor"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = Field(default="local", env="APP_ENV")
    DEBUG: bool = Field(default=False, env="DEBUG")

    # CORS settings
    CORS_ORIGINS: Union[str, List[str]] = Field(
        default='["http://localhost:3000", "http://localhost:8000"]',
        env="CORS_ORIGINS",
    )

    @field_validator("CORS_ORIGINS")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                # If not JSON, treat as comma-separated
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        env="LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    LOG_DIR: str = Field(default="logs", env="LOG_DIR")

    # Port rules
    UNUSED_PORT_DAYS: int = Field(
        default=15,
        env="UNUSED_PORT_DAYS",
        description="Days a default-named port may stay down before it is reported as unused",
    )
    NAMED_UNUSED_PORT_DAYS: int = Field(
        default=45,
        env="NAMED_UNUSED_PORT_DAYS",
        description="Grace period for ports that were given a custom name",
    )
    ACCESS_PORT_MAX_TAGGED_VLANS: int = Field(
        default=2,
        env="ACCESS_PORT_MAX_TAGGED_VLANS",
        description="Tagged VLANs allowed on a port serving a single device before it is flagged",
    )

    # Port profile suggestions
    PROFILE_SUGGESTION_MIN_PORTS: int = Field(default=2, env="PROFILE_SUGGESTION_MIN_PORTS")
    CREATE_NEW_RECOMMEND_THRESHOLD: int = Field(
        default=5,
        env="CREATE_NEW_RECOMMEND_THRESHOLD",
        description="Ports sharing a new profile before the suggestion is raised to a recommendation",
    )
    EXTEND_RECOMMEND_THRESHOLD: int = Field(
        default=3,
        env="EXTEND_RECOMMEND_THRESHOLD",
        description="Affected ports before an existing-profile suggestion is raised to a recommendation",
    )

    # Snapshot limits
    MAX_SNAPSHOT_DEVICES: int = Field(
        default=2000,
        env="MAX_SNAPSHOT_DEVICES",
        description="Largest device list accepted in a single audit request",
    )


# Create global settings instance
@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
