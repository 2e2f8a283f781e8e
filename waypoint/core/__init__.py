"""
Core infrastructure layer for Waypoint.

Purpose
-------
Provide a single import surface for the infrastructure subsystems the
tutorial engine is built on:

- Configuration (Config, ConfigManager)
- Logging (structured logging, logger factory, LogContext)
- Event bus (EventBus, ListenerPriority)
- Infrastructure exceptions (WaypointException hierarchy)

Design Decisions
----------------
- This module is intentionally thin: no logic, no configuration, no I/O.
- Public API is explicit via __all__.
"""

from __future__ import annotations

from waypoint.core.config import Config, Environment
from waypoint.core.config.manager import ConfigManager
from waypoint.core.event import EventBus, ListenerPriority
from waypoint.core.exceptions import (
    ConfigurationError,
    ErrorSeverity,
    EventBusError,
    WaypointException,
)
from waypoint.core.logging import LogContext, get_logger, setup_logging

__all__ = [
    # Configuration
    "Config",
    "ConfigManager",
    "Environment",
    # Events
    "EventBus",
    "ListenerPriority",
    # Logging
    "setup_logging",
    "get_logger",
    "LogContext",
    # Exceptions
    "WaypointException",
    "ConfigurationError",
    "EventBusError",
    "ErrorSeverity",
]
