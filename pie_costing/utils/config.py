"""
Configuration management for the Pie Costing application.

This module handles:
- Database path and URL configuration
- Environment-specific configuration (development vs. production)
- Environment variable overrides (PIE_COSTING_*)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
)

logger = logging.getLogger(__name__)

ENV_ENVIRONMENT = "PIE_COSTING_ENV"
ENV_DATABASE_URL = "PIE_COSTING_DATABASE_URL"
ENV_DB_TIMEOUT = "PIE_COSTING_DB_TIMEOUT"
ENV_LOG_LEVEL = "PIE_COSTING_LOG_LEVEL"

DEFAULT_DB_TIMEOUT = 30
DEFAULT_LOG_LEVEL = "INFO"


class Config:
    """
    Application configuration manager.

    Handles database location, connection settings and logging level.
    Every setting can be overridden through a PIE_COSTING_* environment
    variable; invalid overrides fall back to the default with a warning.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: Environment mode - 'production' or 'development'
        """
        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_documents_dir()

        self._database_dir = self._base_dir
        self._database_path = self._database_dir / DATABASE_FILENAME

    def _get_project_data_dir(self) -> Path:
        """Return the project's data/ directory used in development."""
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_documents_dir(self) -> Path:
        """Return the application folder under the user's Documents directory."""
        return Path.home() / "Documents" / "PieCosting"

    def ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self._database_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        PIE_COSTING_DATABASE_URL takes precedence over the file-based default.
        """
        override = os.environ.get(ENV_DATABASE_URL)
        if override:
            return override

        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def db_timeout(self) -> int:
        """SQLite busy timeout in seconds."""
        raw = os.environ.get(ENV_DB_TIMEOUT)
        if raw is None:
            return DEFAULT_DB_TIMEOUT
        try:
            value = int(raw)
            if value <= 0:
                raise ValueError(raw)
            return value
        except ValueError:
            logger.warning(
                f"Invalid {ENV_DB_TIMEOUT} value '{raw}', using default {DEFAULT_DB_TIMEOUT}"
            )
            return DEFAULT_DB_TIMEOUT

    @property
    def log_level(self) -> int:
        """Logging level for the application loggers."""
        raw = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)
        level = logging.getLevelName(raw.upper())
        if not isinstance(level, int):
            logger.warning(f"Invalid {ENV_LOG_LEVEL} value '{raw}', using {DEFAULT_LOG_LEVEL}")
            return logging.INFO
        return level

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def database_exists(self) -> bool:
        """
        Check if database file exists.

        Returns:
            True if database file exists, False otherwise
        """
        return self._database_path.exists()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(environment='{self.environment}', database_path='{self._database_path}')"


# Global configuration instance
_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    PIE_COSTING_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config():
    """
    Reset the global configuration instance.

    Useful for testing.
    """
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the database URL."""
    return get_config().database_url
