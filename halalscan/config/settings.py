"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

This module implements the Singleton pattern to ensure a single global
configuration instance shared by the scan engine and the registry service.

Features:
---------
- Environment variable loading with type validation
- .env file support for local development
- Computed properties for derived values (timeouts in seconds, paths)

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the registry service
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Registry server bind address
        port: Registry server port number
        database_url: SQLAlchemy database connection string
        cors_origins: Allowed CORS origins (JSON array string)
        api_base_url: Base URL of the remote registry used by the scan engine
        request_timeout_ms: Timeout for scan-product / add-product calls
        probe_timeout_ms: Timeout for the connectivity probe
        scan_cooldown_ms: Debounce window for repeated scans
        storage_dir: Directory holding the durable client stores
        server_error_threshold: Consecutive server errors before going offline
        probe_interval_seconds: Reconnect probe interval while offline
        auto_probe_enabled: Enable the background reconnect task

    Example:
        >>> settings = Settings()
        >>> settings.request_timeout_seconds
        3.0
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Halal Product Registry",
        description="Display name for the registry service"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # REGISTRY SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=5001,
        ge=1,
        le=65535,
        description="Server port number"
    )

    database_url: str = Field(
        default="sqlite:///./storage/db/registry.db",
        description="SQLAlchemy database connection string"
    )

    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # SCAN ENGINE SETTINGS
    # =========================================================================
    api_base_url: str = Field(
        default="http://localhost:5001",
        description="Base URL of the remote product registry"
    )

    request_timeout_ms: int = Field(
        default=3000,
        ge=100,
        le=60000,
        description="Timeout for product lookups and submissions"
    )

    probe_timeout_ms: int = Field(
        default=1500,
        ge=100,
        le=30000,
        description="Timeout for the connectivity probe"
    )

    scan_cooldown_ms: int = Field(
        default=3000,
        ge=0,
        le=60000,
        description="Window in which a repeated scan of the same code is ignored"
    )

    storage_dir: str = Field(
        default="storage/client",
        description="Directory for the product cache and pending queue"
    )

    server_error_threshold: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Consecutive server errors that force offline mode"
    )

    probe_interval_seconds: int = Field(
        default=30,
        ge=1,
        le=3600,
        description="Interval between reconnect probes while offline"
    )

    auto_probe_enabled: bool = Field(
        default=True,
        description="Run the background reconnect probe while offline"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """
        Validate and normalize application environment.

        Args:
            value: Raw environment value

        Returns:
            Lowercase normalized environment name
        """
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("api_base_url")
    @classmethod
    def validate_api_base_url(cls, value: str) -> str:
        """
        Validate the registry URL and strip trailing slashes.

        Raises:
            ValueError: If the URL is not http(s)
        """
        normalized = value.strip().rstrip("/")

        if not normalized.startswith(("http://", "https://")):
            raise ValueError(
                f"api_base_url must start with http:// or https://: {value}"
            )

        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def request_timeout_seconds(self) -> float:
        """Remote call timeout in seconds (httpx units)."""
        return self.request_timeout_ms / 1000

    @property
    def probe_timeout_seconds(self) -> float:
        """Probe timeout in seconds (httpx units)."""
        return self.probe_timeout_ms / 1000

    @property
    def storage_path(self) -> Path:
        """Client storage directory as Path object."""
        return Path(self.storage_dir)

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for non-SQLite or in-memory databases
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if db_path.startswith("./"):
                db_path = db_path[2:]
            return Path(db_path)
        return None

    def ensure_directories(self) -> None:
        """Create the database directory (SQLite only)."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"api_base_url={self.api_base_url!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
