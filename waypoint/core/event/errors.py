"""
Error Handling Helpers for the Waypoint EventBus.

Listener failures are isolated: one failing listener is logged with full
context and never prevents the remaining listeners (or the tutorial run that
emitted the event) from proceeding.
"""

from __future__ import annotations

from logging import Logger

from waypoint.core.event.types import EventListener


def handle_listener_error(
    *,
    logger: Logger,
    event_name: str,
    listener: EventListener,
    exc: BaseException,
) -> None:
    """
    Log a listener execution error with event and listener context.

    This function never raises.

    Examples
    --------
    >>> try:
    ...     listener.callback(payload)
    ... except Exception as exc:
    ...     handle_listener_error(
    ...         logger=logger,
    ...         event_name="tutorial.step_changed",
    ...         listener=listener,
    ...         exc=exc,
    ...     )
    """
    logger.error(
        "EventBus listener error",
        extra={
            "event_name": event_name,
            "listener_id": listener.identifier,
            "priority": listener.priority.name,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=(type(exc), exc, exc.__traceback__),
    )
