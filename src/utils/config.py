"""
Configuration management for the FIFO Cost Ledger.

This module handles:
- Database path configuration
- Environment-specific configuration (development vs. production)
- Costing defaults (tax rate, expiry warning window)

Every setting can be overridden through a FIFO_LEDGER_* environment variable.
Invalid values fall back to the default and log a warning.
"""

import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from .constants import (
    APP_NAME,
    APP_VERSION,
    DATABASE_FILENAME,
    DATABASE_VERSION,
    DEFAULT_DB_TIMEOUT,
    DEFAULT_EXPIRY_WARNING_DAYS,
    DEFAULT_TAX_RATE,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "FIFO_LEDGER_"


def _env_int(name: str, default: int) -> int:
    """Read a non-negative integer from the environment, falling back to default."""
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
        return default
    if value < 0:
        logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
        return default
    return value


def _env_decimal(name: str, default: Decimal) -> Decimal:
    """Read a non-negative Decimal from the environment, falling back to default."""
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
        return default
    if not value.is_finite() or value < 0:
        logger.warning(f"Invalid {ENV_PREFIX}{name}={raw!r}, using default {default}")
        return default
    return value


class Config:
    """
    Application configuration manager.

    Handles database location and the costing defaults used by the
    ledger services.
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
        self._database_version = DATABASE_VERSION

        override = os.environ.get(ENV_PREFIX + "DB_PATH")
        if override:
            self._database_path = Path(override)
            self._database_dir = self._database_path.parent
        else:
            if environment == "development":
                self._database_dir = self._get_project_data_dir()
            else:
                self._database_dir = self._get_user_data_dir()
            self._database_path = self._database_dir / DATABASE_FILENAME

        self._db_timeout = _env_int("DB_TIMEOUT", DEFAULT_DB_TIMEOUT)
        self._expiry_warning_days = _env_int("EXPIRY_DAYS", DEFAULT_EXPIRY_WARNING_DAYS)
        self._default_tax_rate = _env_decimal("DEFAULT_TAX_RATE", DEFAULT_TAX_RATE)

    def _get_project_data_dir(self) -> Path:
        """
        Get the project's data directory for development.

        Returns:
            Path to project data/ directory
        """
        project_root = Path(__file__).parent.parent.parent
        return project_root / "data"

    def _get_user_data_dir(self) -> Path:
        """
        Get the per-user data directory for production.

        Returns:
            Path to ~/.fifo_ledger
        """
        return Path.home() / ".fifo_ledger"

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
    def database_version(self) -> str:
        """Database schema version."""
        return self._database_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Returns:
            Database URL string for SQLAlchemy
        """
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def db_timeout(self) -> int:
        """SQLite busy timeout in seconds."""
        return self._db_timeout

    @property
    def default_tax_rate(self) -> Decimal:
        """Tax rate applied to product costs that don't declare their own."""
        return self._default_tax_rate

    @property
    def expiry_warning_days(self) -> int:
        """Default look-ahead window for expiring lots."""
        return self._expiry_warning_days

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


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment cannot be changed by passing
    a different environment argument - this prevents switching databases
    mid-session.

    Args:
        environment: Optional environment for initial creation. If None, uses
                    FIFO_LEDGER_ENV or defaults to production. Ignored if
                    singleton already exists.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_PREFIX + "ENV", "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton to prevent database switching."
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
    """
    Get the database URL.

    Returns:
        SQLAlchemy database URL string
    """
    return get_config().database_url
