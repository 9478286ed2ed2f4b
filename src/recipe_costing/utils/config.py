"""
Configuration management for the Recipe Costing engine.

This module handles:
- Database path configuration
- Environment-specific configuration (production, development, testing)
- Environment variable overrides
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

ENV_VAR_ENVIRONMENT = "RECIPE_COSTING_ENV"
ENV_VAR_DATABASE_URL = "RECIPE_COSTING_DB_URL"

ENVIRONMENTS = ("production", "development", "testing")


class Config:
    """
    Application configuration manager.

    Resolves where the SQLite database lives for the selected environment.
    The testing environment always uses an in-memory database.
    """

    def __init__(self, environment: str = "production"):
        """
        Initialize configuration.

        Args:
            environment: 'production', 'development' or 'testing'

        Raises:
            ValueError: If environment is not recognised
        """
        if environment not in ENVIRONMENTS:
            raise ValueError(
                f"Unknown environment '{environment}'. Expected one of: {', '.join(ENVIRONMENTS)}"
            )

        self.environment = environment
        self._app_name = APP_NAME
        self._app_version = APP_VERSION
        self._database_url_override = os.environ.get(ENV_VAR_DATABASE_URL)

        if environment == "development":
            self._base_dir = self._get_project_data_dir()
        else:
            self._base_dir = self._get_user_documents_dir()

        self._database_path = self._base_dir / DATABASE_FILENAME

    def _get_project_data_dir(self) -> Path:
        """Project data/ directory used in development."""
        project_root = Path(__file__).parent.parent.parent.parent
        return project_root / "data"

    def _get_user_documents_dir(self) -> Path:
        """User's Documents directory with an app subdirectory."""
        return Path.home() / "Documents" / "RecipeCosting"

    def ensure_directories(self) -> None:
        """Create the database directory if a file database is in use."""
        if self.uses_file_database:
            self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def app_version(self) -> str:
        return self._app_version

    @property
    def database_path(self) -> Path:
        """Full path to the database file."""
        return self._database_path

    @property
    def database_url(self) -> str:
        """
        SQLAlchemy database URL.

        Precedence: RECIPE_COSTING_DB_URL, then in-memory for testing,
        then the environment's database file.
        """
        if self._database_url_override:
            return self._database_url_override
        if self.environment == "testing":
            return "sqlite:///:memory:"
        db_path_str = str(self._database_path).replace("\\", "/")
        return f"sqlite:///{db_path_str}"

    @property
    def uses_file_database(self) -> bool:
        url = self.database_url
        return url.startswith("sqlite:///") and ":memory:" not in url

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def database_exists(self) -> bool:
        """True if the configured database file exists."""
        if not self.uses_file_database:
            return False
        return self._database_path.exists()

    def __repr__(self) -> str:
        return f"Config(environment='{self.environment}', database_url='{self.database_url}')"


_config_instance: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Get the global configuration instance.

    Once created, the singleton's environment is not changed by passing a
    different environment argument; call reset_config() first.

    Args:
        environment: Optional environment for initial creation. If None, uses
            RECIPE_COSTING_ENV or defaults to production.

    Returns:
        Config instance
    """
    global _config_instance

    if _config_instance is None:
        if environment is None:
            environment = os.environ.get(ENV_VAR_ENVIRONMENT, "production")
        _config_instance = Config(environment)
    elif environment is not None and environment != _config_instance.environment:
        logger.warning(
            f"get_config() called with environment='{environment}' but singleton "
            f"already exists with environment='{_config_instance.environment}'. "
            f"Returning existing singleton."
        )

    return _config_instance


def reset_config() -> None:
    """Reset the global configuration instance. Useful for testing."""
    global _config_instance
    _config_instance = None


def get_database_url() -> str:
    """Get the configured database URL."""
    return get_config().database_url
