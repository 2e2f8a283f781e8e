"""
Event Log Context Helpers for the Waypoint EventBus.

Best-effort enrichment of the logging context with the event being
dispatched. Only payload keys are recorded, never values.
"""

from __future__ import annotations

from typing import Any

from waypoint.core.logging.logger import get_logger, set_log_context

logger = get_logger(__name__)


def apply_event_log_context(event_name: str, payload: dict[str, Any]) -> None:
    """
    Apply event-related fields to the current LogContext.

    Failures are logged at debug level and never propagated.
    """
    try:
        set_log_context(
            event_name=event_name,
            event_keys=sorted(payload.keys()),
        )
    except (TypeError, ValueError) as exc:
        logger.debug(
            "Failed to apply event log context",
            extra={
                "event_name": event_name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
