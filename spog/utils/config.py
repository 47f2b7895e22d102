"""
Configuration management for the SPOG Inventory Tracker application.

This module handles:
- Database location (SQLite file or an explicit SQLAlchemy URL)
- Session lifetimes for authenticated users
- HTTP server host/port and log level
- Environment-specific configuration (development, production, test)

Every setting can be overridden with an environment variable prefixed
with ``SPOG_``.
"""

import os
from pathlib import Path
from typing import Optional

from spog.utils.constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
)

ENVIRONMENTS = ("production", "development", "test")


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to default."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


class Config:
    """
    Application configuration manager.

    Handles database location, session lifetimes and server settings.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: 'production', 'development' or 'test'

        Raises:
            ValueError: If environment is not recognized
        """
        if environment not in ENVIRONMENTS:
            raise ValueError(
                f"Unknown environment '{environment}'. Expected one of: {', '.join(ENVIRONMENTS)}"
            )

        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_version = DATABASE_VERSION

        if environment == "production":
            self._base_dir = self._get_user_data_dir()
        else:
            self._base_dir = self._get_project_data_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME
        self._database_url_override = os.environ.get("SPOG_DATABASE_URL")

        self.session_hours = _env_int("SPOG_SESSION_HOURS", 24)
        self.remember_me_days = _env_int("SPOG_REMEMBER_ME_DAYS", 30)
        self.host = os.environ.get("SPOG_HOST", "127.0.0.1")
        self.port = _env_int("SPOG_PORT", 8000)
        self.log_level = os.environ.get(
            "SPOG_LOG_LEVEL", "DEBUG" if environment == "development" else "INFO"
        ).upper()

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development and test.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.spog_tracker (or SPOG_DATA_DIR when set)
        """
        override = os.environ.get("SPOG_DATA_DIR")
        if override:
            return Path(override)
        return Path.home() / ".spog_tracker"

    def ensure_directories(self) -> None:
        """Create the data directory if a file-based database is in use."""
        if self._database_url_override is None:
            self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        """Application name."""
        return self._app_name

    @property
    def app_version(self) -> str:
        """Application version."""
        return self._app_version

    @property
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the SQLite database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            SPOG_DATABASE_URL when set, otherwise a SQLite URL for database_path
        """
        if self._database_url_override:
            return self._database_url_override
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        return self.environment == "test"

    def database_exists(self) -> bool:
        """
        Check if the database file exists.

        Always True when an explicit database URL is configured.
        """
        if self._database_url_override:
            return True
        return self._database_path.exists()

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument; call reset_config() first.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    SPOG_ENV or defaults to production.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get("SPOG_ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        import logging

        logger = logging.getLogger(__name__)
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
    """Get the configured SQLAlchemy database URL."""
    return get_config().database_url
