"""
Base Service Foundation

Purpose
-------
Provides the foundational class for Waypoint services. Services orchestrate
domain models, read tunables from ConfigManager and publish notifications on
the EventBus.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access patterns
- Event emission helpers (synchronous, so notifications keep the order of
  the state changes that produced them)

What this class does NOT do:
- Own the event bus lifecycle (the host or the model creates it)
- Contain tutorial-specific logic

Usage
-----
    class HintService(BaseService):
        def __init__(self, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)

        def show_hint(self, hint_id: str) -> None:
            self.log_operation("show_hint", hint_id=hint_id)
            self.emit_event("hint.shown", {"hint_id": hint_id})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from waypoint.core.exceptions import ConfigurationError, get_error_severity

if TYPE_CHECKING:
    from logging import Logger

    from waypoint.core.config.manager import ConfigManager
    from waypoint.core.event.bus import EventBus


class BaseService:
    """
    Base class for Waypoint services.

    Args:
        config_manager: Tunables lookup
        event_bus: Event bus for notifications
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Safely retrieve configuration value.

        Args:
            key: Dot-notation configuration key
            default: Default value if key not found
            required: If True, raise exception if key missing

        Returns:
            Configuration value

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Emit a notification on the service's event bus.

        Args:
            event_type: Event name, e.g. "tutorial.started"
            data: Event payload data
            context: Optional additional payload fields
        """
        self._events.emit(event_type, {**data, **(context or {})})

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log a service operation with structured context.

        Args:
            operation: Name of the operation being performed
            **context: Additional context data
        """
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(
        self,
        operation: str,
        error: BaseException,
        **context: Any,
    ) -> None:
        """
        Log a service error with full context.

        The record level follows the exception's ErrorSeverity; foreign
        exceptions log at ERROR.

        Args:
            operation: Name of the operation that failed
            error: The exception that occurred
            **context: Additional context data
        """
        severity = get_error_severity(error)
        self.log.log(
            logging.getLevelName(severity.value.upper()),
            f"Service error during {operation}: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                "severity": severity.value,
                **context,
            },
            exc_info=(type(error), error, error.__traceback__),
        )
