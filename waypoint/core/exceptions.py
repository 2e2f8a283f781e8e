"""
Infrastructure exceptions for Waypoint.

Purpose
-------
Define the structured exception hierarchy for infrastructure-level concerns:
configuration errors and event dispatch failures. Tutorial runtime misuse is
never expressed as an exception; these types cover authoring and wiring
problems that a host should see at startup.

Design Notes
------------
- All infrastructure exceptions inherit from `WaypointException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `error_code`: short, stable identifier for programmatic use
- `get_error_severity` centralizes severity lookup for arbitrary exceptions.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning
    INFO = "info"  # Normal operation (e.g., validation failures)
    WARNING = "warning"  # Concerning but handled
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures requiring immediate action


class WaypointException(Exception):
    """
    Base exception for all Waypoint infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        error_code: Optional code for programmatic handling

    Example:
        >>> raise WaypointException(
        ...     "Config directory unreadable",
        ...     {"config_dir": "config"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}"
            ")"
        )


class ConfigurationError(WaypointException):
    """
    Raised when a configuration value is missing or fails validation.

    Args:
        config_key: Dot-notation key that failed
        reason: Why the value was rejected
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, reason: str) -> None:
        self.config_key = config_key
        self.reason = reason
        super().__init__(
            f"Configuration error for '{config_key}': {reason}",
            details={"config_key": config_key, "reason": reason},
            error_code="CONFIGURATION_ERROR",
        )


class EventBusError(WaypointException):
    """Raised when a listener cannot be registered on the event bus."""

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(self, event_name: str, reason: str) -> None:
        self.event_name = event_name
        super().__init__(
            f"EventBus error for '{event_name}': {reason}",
            details={"event_name": event_name, "reason": reason},
            error_code="EVENT_BUS_ERROR",
        )


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """Return the severity carried by `exc`, or ERROR for foreign exceptions."""
    if isinstance(exc, WaypointException):
        return exc.severity
    return ErrorSeverity.ERROR


__all__ = [
    "ErrorSeverity",
    "WaypointException",
    "ConfigurationError",
    "EventBusError",
    "get_error_severity",
]
