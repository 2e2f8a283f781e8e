"""
Waypoint EventBus: in-process pub/sub for tutorial notifications.

Purpose
-------
Provides the EventBus class implementing publish/subscribe with priority
ordering, wildcard routing and per-listener error isolation. The tutorial
model and controller emit their notifications through it; hosts subscribe to
drive progress widgets, analytics or persistence.

Responsibilities
----------------
- Register/unregister event listeners with priorities
- Dispatch events to all matching listeners (exact + wildcard)
- `emit()`: synchronous dispatch, preserving exact firing order relative to
  the state change that caused it
- `publish()`: async dispatch that awaits coroutine listeners in order
- Error isolation (one failing listener never blocks others)
- Track background tasks spawned for coroutine listeners during `emit()`

Design Decisions
----------------
- **Instance-based**: Each model/controller pair may own its own bus.
- **Synchronous emit**: State-machine notifications must fire before the
  mutating call returns, so `emit()` never yields.
- **Coroutine listeners under emit()**: Scheduled as tracked tasks on the
  running loop. Without a running loop the coroutine is closed and a warning
  is logged.
- **No thread pool**: Sync listeners run inline; payloads carry live objects
  that are not thread-safe.

Thread Safety
-------------
Designed for single-threaded asyncio usage. All methods must be called from
the same thread.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Optional

from waypoint.core.event.context import apply_event_log_context
from waypoint.core.event.errors import handle_listener_error
from waypoint.core.event.registry import ListenerRegistry
from waypoint.core.event.types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)
from waypoint.core.exceptions import EventBusError
from waypoint.core.logging.logger import get_logger

logger = get_logger(__name__)


class EventBus:
    """
    In-process EventBus for Waypoint.

    Examples
    --------
    >>> bus = EventBus()
    >>> bus.subscribe("tutorial.step_changed", on_step, priority=ListenerPriority.HIGH)
    >>> bus.emit("tutorial.step_changed", {"index": 0, "step": step})
    """

    def __init__(self, registry: Optional[ListenerRegistry] = None) -> None:
        self._registry = registry or ListenerRegistry()
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._emitted_counts: dict[str, int] = {}

    # ------------------------------------------------------------------ #
    # Listener Validation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_callback_signature(event_name: str, callback: CallbackType) -> None:
        """
        Ensure callback accepts exactly one positional parameter.

        Raises
        ------
        EventBusError:
            If callback is not callable or its signature is invalid.
        """
        if not callable(callback):
            raise EventBusError(event_name, "listener is not callable")

        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            # Built-ins may not expose a signature; trust the caller.
            return

        params = [
            p
            for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
            and p.default is p.empty
        ]
        has_varargs = any(p.kind is p.VAR_POSITIONAL for p in sig.parameters.values())
        if len(params) != 1 and not (has_varargs and len(params) == 0):
            callback_name = getattr(callback, "__qualname__", None) or repr(callback)
            raise EventBusError(
                event_name,
                f"listener must accept exactly 1 parameter (EventPayload), "
                f"got {len(params)} for '{callback_name}'",
            )

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
        allow_duplicates: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event.

        Parameters
        ----------
        event_name:
            Event name like "tutorial.started" or wildcard like "tutorial.*".
        callback:
            Async or sync callable taking a single EventPayload parameter.
        priority:
            ListenerPriority enum value.
        identifier:
            Optional unique identifier. Auto-generated if None.
        once:
            If True, listener is removed before its first execution.
        allow_duplicates:
            If False, prevents registering same (event_name, identifier) twice.

        Returns
        -------
        str:
            The listener identifier (for unsubscribing later).
        """
        self._validate_callback_signature(event_name, callback)

        listener = EventListener.from_callback(
            event_name=event_name,
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )

        added = self._registry.add_listener(
            event_name=event_name,
            listener=listener,
            allow_duplicates=allow_duplicates,
        )

        if added:
            logger.debug(
                "EventBus: subscribed listener",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "once": listener.once,
                },
            )
        else:
            logger.warning(
                "EventBus: duplicate listener prevented",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )

        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        removed = self._registry.remove_listener(
            event_name=event_name, identifier=identifier
        )

        if removed:
            logger.debug(
                "EventBus: unsubscribed listener",
                extra={"event_name": event_name, "listener_id": identifier},
            )

        return removed

    def clear(self) -> None:
        """Remove all listeners from all events."""
        total = self._registry.clear_all()
        logger.debug(
            "EventBus: cleared all listeners",
            extra={"previous_listener_count": total},
        )

    # ------------------------------------------------------------------ #
    # Dispatch API
    # ------------------------------------------------------------------ #

    def _prepare(self, event_name: str, data: EventPayload) -> list[EventListener]:
        self._emitted_counts[event_name] = self._emitted_counts.get(event_name, 0) + 1
        apply_event_log_context(event_name, data)
        return self._registry.extract_listeners_for_event(event_name=event_name)

    def emit(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Dispatch an event synchronously.

        Sync listeners run inline in priority order. Coroutine listeners are
        started as background tasks; their slot in the returned list is None.

        Returns
        -------
        list[Any]:
            Results from listeners, None for failed or backgrounded ones.
        """
        listeners = self._prepare(event_name, data)
        results: list[Any] = []

        for listener in listeners:
            try:
                result = listener.callback(data)
            except Exception as exc:
                handle_listener_error(
                    logger=logger, event_name=event_name, listener=listener, exc=exc
                )
                results.append(None)
                continue

            if inspect.isawaitable(result):
                self._schedule(event_name, listener, result)
                results.append(None)
            else:
                results.append(result)

        return results

    async def publish(self, event_name: str, data: EventPayload) -> list[Any]:
        """
        Dispatch an event, awaiting coroutine listeners in priority order.

        Returns
        -------
        list[Any]:
            Results from listeners, None for failed ones.
        """
        listeners = self._prepare(event_name, data)
        results: list[Any] = []

        for listener in listeners:
            try:
                result = listener.callback(data)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as exc:
                handle_listener_error(
                    logger=logger, event_name=event_name, listener=listener, exc=exc
                )
                result = None
            results.append(result)

        return results

    def _schedule(self, event_name: str, listener: EventListener, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.warning(
                "EventBus: async listener dropped, no running event loop",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
            return

        task = loop.create_task(
            self._await_listener(event_name, listener, awaitable),
            name=f"eventbus-{event_name}-{listener.identifier}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _await_listener(
        self, event_name: str, listener: EventListener, awaitable: Any
    ) -> Any:
        try:
            return await awaitable
        except Exception as exc:
            handle_listener_error(
                logger=logger, event_name=event_name, listener=listener, exc=exc
            )
            return None

    async def drain(self) -> None:
        """Wait for every background listener task started by emit()."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name:
            return self._registry.get_listener_count_for_event(event_name)
        return self._registry.get_total_listener_count()

    def get_all_events(self) -> list[str]:
        return self._registry.get_all_event_keys()

    def get_background_task_count(self) -> int:
        return len(self._background_tasks)

    def get_emitted_count(self, event_name: str) -> int:
        return self._emitted_counts.get(event_name, 0)
