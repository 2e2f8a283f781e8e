"""
Core Event Types for the Waypoint EventBus.

Purpose
-------
Provides fundamental type definitions for the event system: event payloads,
listener priorities, callback types and the listener record.

Design Decisions
----------------
- **EventPayload as dict**: Simple, flexible structure. Tutorial payloads
  may carry live objects (steps, sequences) because dispatch is in-process.
- **ListenerPriority enum**: Explicit priority levels with numeric values
  for stable sorting. Lower values run first.
- **CallbackType union**: Supports both async and sync callbacks.
- **Factory pattern**: from_callback() provides clean listener creation with
  auto-generated identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

EventPayload = dict[str, Any]


class ListenerPriority(Enum):
    """
    Priority levels for event listeners.

    The numeric values determine execution order (lower = earlier). Every
    tier is dispatched in order; priorities only decide who sees an event
    first (e.g. a progress widget before an analytics sink).

    Examples
    --------
    >>> ListenerPriority.CRITICAL.value
    0
    """

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    Represents a registered event listener.

    Attributes
    ----------
    callback:
        Async or sync callable invoked with the event payload.
    priority:
        ListenerPriority enum value determining execution order.
    identifier:
        Unique string identifier for deduplication and unsubscription.
    once:
        If True, the listener is removed from the registry before its first
        execution (one-shot listener).
    """

    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority,
        identifier: Optional[str],
        once: bool,
    ) -> EventListener:
        """
        Create an EventListener, generating an identifier when none is given.

        The generated identifier is `module.qualname@event_name`; bound
        methods additionally carry the instance id so two controllers can
        subscribe the same method without colliding.

        Examples
        --------
        >>> listener = EventListener.from_callback(
        ...     event_name="tutorial.step_changed",
        ...     callback=on_step,
        ...     priority=ListenerPriority.NORMAL,
        ...     identifier=None,
        ...     once=False,
        ... )
        >>> listener.identifier
        'host.on_step@tutorial.step_changed'
        """
        if identifier is None:
            module = getattr(callback, "__module__", "unknown")
            qualname = getattr(
                callback, "__qualname__", getattr(callback, "__name__", "callback")
            )
            owner = getattr(callback, "__self__", None)
            suffix = f"#{id(owner):x}" if owner is not None else ""
            identifier = f"{module}.{qualname}{suffix}@{event_name}"

        return cls(
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )
