"""
Static configuration management for Waypoint.

Purpose
-------
Provides centralized static configuration loaded from environment variables
with sensible defaults and type coercion. This module handles settings that
are fixed at process startup: environment, logging and file locations.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide type-safe access to all static configuration values
- Validate critical settings on startup
- Track which values came from the environment versus defaults

Non-Responsibilities
--------------------
- Tunable engine parameters (handled by ConfigManager)
- Tutorial definitions (supplied by the host)

Architecture Notes
------------------
- Singleton pattern via class methods (no instantiation)
- `Config.load()` runs on import so logging can read its settings
- Directory paths are relative to the working directory unless absolute

Dependencies
------------
- python-dotenv: Environment variable loading

Environment Variables
---------------------
- WAYPOINT_ENV: development | testing | staging | production
- DEBUG: Debug mode flag (default: False)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_JSON: Force JSON console logs (default: production only)
- LOG_COLORS: Colored console logs on a TTY (default: True)
- LOG_TO_FILE: Enable the daily rotating file sink (default: False)
- LOGS_DIR: Directory for the file sink (default: logs)
- CONFIG_DIR: Directory scanned for YAML tunables (default: config)
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            # Structured logger is not initialized yet during bootstrap
            import logging
            logging.warning(
                f"Unknown environment '{value}', defaulting to development"
            )
            return cls.DEVELOPMENT


class _ConfigLoadMetrics:
    """Tracks which configuration values came from the environment."""

    def __init__(self) -> None:
        self.env_vars_loaded: Dict[str, bool] = {}
        self.defaults_used: Dict[str, Any] = {}

    def record_env_load(self, key: str, from_env: bool, default: Any) -> None:
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def get_summary(self) -> Dict[str, Any]:
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "defaults_used": sorted(self.defaults_used.keys()),
        }


_TRUE_VALUES = {"1", "true", "yes", "on"}


class Config:
    """
    Centralized static configuration for Waypoint.

    Usage
    -----
    >>> Config.LOG_LEVEL
    'INFO'
    >>> if Config.is_production():
    ...     pass
    """

    _metrics: Optional[_ConfigLoadMetrics] = None

    # =========================================================================
    # Environment
    # =========================================================================

    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # =========================================================================
    # Logging
    # =========================================================================

    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False
    LOGS_DIR: Path = Path("logs")

    # =========================================================================
    # Tunables
    # =========================================================================

    CONFIG_DIR: Path = Path("config")

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def _env_str(cls, key: str, default: str) -> str:
        raw = os.getenv(key)
        cls._metrics.record_env_load(key, raw is not None, default)  # type: ignore[union-attr]
        return raw if raw is not None else default

    @classmethod
    def _env_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        raw = os.getenv(key)
        cls._metrics.record_env_load(key, raw is not None, default)  # type: ignore[union-attr]
        if raw is None:
            return default
        return raw.strip().lower() in _TRUE_VALUES

    @classmethod
    def load(cls) -> None:
        """(Re)read every setting from the environment."""
        cls._metrics = _ConfigLoadMetrics()

        cls.ENVIRONMENT = Environment.from_string(
            cls._env_str("WAYPOINT_ENV", "development")
        ).value
        cls.DEBUG = bool(cls._env_bool("DEBUG", False))

        cls.LOG_LEVEL = cls._env_str("LOG_LEVEL", "DEBUG" if cls.DEBUG else "INFO").upper()
        cls.LOG_JSON = cls._env_bool("LOG_JSON", None)
        cls.LOG_COLORS = bool(cls._env_bool("LOG_COLORS", True))
        cls.LOG_TO_FILE = bool(cls._env_bool("LOG_TO_FILE", False))
        cls.LOGS_DIR = Path(cls._env_str("LOGS_DIR", "logs"))

        cls.CONFIG_DIR = Path(cls._env_str("CONFIG_DIR", "config"))

    @classmethod
    def validate(cls) -> None:
        """
        Validate loaded settings, falling back to safe values where possible.

        An unknown LOG_LEVEL is replaced with INFO rather than failing startup.
        """
        import logging

        if cls.LOG_LEVEL not in logging.getLevelNamesMapping():
            logging.warning(f"Unknown LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
            cls.LOG_LEVEL = "INFO"

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Return a loggable summary of the static configuration."""
        summary: Dict[str, Any] = {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "log_to_file": cls.LOG_TO_FILE,
            "config_dir": str(cls.CONFIG_DIR),
        }
        if cls._metrics is not None:
            summary["load"] = cls._metrics.get_summary()
        return summary


Config.load()
Config.validate()
