# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# This module loads configuration from environment variables using pydantic-settings.
#
# Usage:
#   from app.config import settings
#   print(settings.database_path)
#
# Environment variables are loaded from:
# 1. System environment variables
# 2. .env file in project root (if exists)
# =============================================================================

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Everything has a development default, so the service starts with no
    configuration and keeps its data under ./data.
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging)"
    )

    API_HOST: str = Field(
        default="127.0.0.1",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:1420,http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    # DATABASE_PATH and BLOBS_DIR default to locations inside DATA_DIR

    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Root directory for the local store"
    )

    DATABASE_PATH: Path | None = Field(
        default=None,
        description="SQLite database file (default: DATA_DIR/compute.db)"
    )

    BLOBS_DIR: Path | None = Field(
        default=None,
        description="Content-addressed Parquet blob directory (default: DATA_DIR/blobs)"
    )

    # -------------------------------------------------------------------------
    # Engine
    # -------------------------------------------------------------------------

    ENGINE_VERSION: str = Field(
        default="0.1.0",
        description="Version stamped on every execution record"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Parse CORS_ORIGINS string into a list.

        Example: "http://localhost:1420, https://app.example.com" -> ["http://localhost:1420", ...]
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def database_path(self) -> Path:
        return self.DATABASE_PATH or self.DATA_DIR / "compute.db"

    @property
    def blobs_dir(self) -> Path:
        return self.BLOBS_DIR or self.DATA_DIR / "blobs"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    Using lru_cache ensures we only parse .env and validate once,
    not on every access.
    """
    return Settings()


# Global settings instance for easy importing
# Usage: from app.config import settings
settings = get_settings()
