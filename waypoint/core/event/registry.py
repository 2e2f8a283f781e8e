"""
ListenerRegistry: Storage and lookup for EventBus listeners.

Purpose
-------
Provides storage and retrieval of event listeners, supporting both exact
event names and wildcard patterns.

Design Decisions
----------------
- **No async/await**: asyncio's event loop is single-threaded, making
  dictionary mutations atomic between awaits. No locking.
- **Deterministic ordering**: Listeners sorted by (priority, registration
  order) so listeners of equal priority fire in the order they subscribed.
- **Atomic once-pruning**: extract_listeners_for_event() retrieves and prunes
  once=True listeners in a single step.
"""

from __future__ import annotations

import itertools

from waypoint.core.event.router import EventRouter
from waypoint.core.event.types import EventListener


class ListenerRegistry:
    """
    Registry for event listeners (exact and wildcard).

    Thread Safety
    -------------
    Not thread-safe. Designed for single-threaded asyncio usage.

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> registry.add_listener("tutorial.started", listener, allow_duplicates=False)
    True
    >>> len(registry.extract_listeners_for_event("tutorial.started"))
    1
    """

    def __init__(self) -> None:
        self._router = EventRouter()
        self._sequence = itertools.count()

        # Exact event name -> list of (order, listener)
        self._listeners: dict[str, list[tuple[int, EventListener]]] = {}

        # List of (order, wildcard_pattern, listener)
        self._wildcard_listeners: list[tuple[int, str, EventListener]] = []

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def add_listener(
        self,
        event_name: str,
        listener: EventListener,
        *,
        allow_duplicates: bool,
    ) -> bool:
        """
        Register a listener for an event or wildcard pattern.

        Returns
        -------
        bool:
            True if the listener was added, False if it was prevented as
            a duplicate.
        """
        order = next(self._sequence)

        if "*" in event_name:
            if not allow_duplicates and any(
                pattern == event_name and lst.identifier == listener.identifier
                for _, pattern, lst in self._wildcard_listeners
            ):
                return False

            self._wildcard_listeners.append((order, event_name, listener))
            return True

        listeners = self._listeners.setdefault(event_name, [])

        if not allow_duplicates and any(
            lst.identifier == listener.identifier for _, lst in listeners
        ):
            return False

        listeners.append((order, listener))
        return True

    def remove_listener(self, event_name: str, identifier: str) -> bool:
        """Remove a listener by identifier; True if anything was removed."""
        removed = False

        if event_name in self._listeners:
            original_count = len(self._listeners[event_name])
            self._listeners[event_name] = [
                (order, lst)
                for order, lst in self._listeners[event_name]
                if lst.identifier != identifier
            ]
            removed = len(self._listeners[event_name]) < original_count

            if not self._listeners[event_name]:
                del self._listeners[event_name]

        original_wc_count = len(self._wildcard_listeners)
        self._wildcard_listeners = [
            (order, pattern, lst)
            for order, pattern, lst in self._wildcard_listeners
            if not (pattern == event_name and lst.identifier == identifier)
        ]
        removed = removed or (len(self._wildcard_listeners) < original_wc_count)

        return removed

    def clear_all(self) -> int:
        """Remove all listeners and return previous total count."""
        total = self.get_total_listener_count()
        self._listeners.clear()
        self._wildcard_listeners.clear()
        return total

    # ------------------------------------------------------------------ #
    # Lookup & Once-Removal
    # ------------------------------------------------------------------ #

    def extract_listeners_for_event(self, event_name: str) -> list[EventListener]:
        """
        Collect all listeners for an event and prune once=True listeners.

        Returns
        -------
        list[EventListener]:
            Exact and wildcard listeners sorted by (priority, registration
            order).
        """
        collected: list[tuple[int, EventListener]] = []

        exact_list = self._listeners.get(event_name, [])
        kept_exact = [(order, lst) for order, lst in exact_list if not lst.once]
        collected.extend(exact_list)

        if kept_exact:
            self._listeners[event_name] = kept_exact
        elif event_name in self._listeners:
            del self._listeners[event_name]

        new_wildcards: list[tuple[int, str, EventListener]] = []
        for order, pattern, listener in self._wildcard_listeners:
            if self._router.matches(event_name, pattern):
                collected.append((order, listener))
                if not listener.once:
                    new_wildcards.append((order, pattern, listener))
            else:
                new_wildcards.append((order, pattern, listener))

        self._wildcard_listeners = new_wildcards

        collected.sort(key=lambda item: (item[1].priority.value, item[0]))
        return [listener for _, listener in collected]

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_listener_count_for_event(self, event_name: str) -> int:
        """Count listeners that would receive this event (exact + wildcard)."""
        count = len(self._listeners.get(event_name, []))
        count += sum(
            1
            for _, pattern, _ in self._wildcard_listeners
            if self._router.matches(event_name, pattern)
        )
        return count

    def get_total_listener_count(self) -> int:
        total = sum(len(listeners) for listeners in self._listeners.values())
        total += len(self._wildcard_listeners)
        return total

    def get_all_event_keys(self) -> list[str]:
        """Return sorted list of all event names and wildcard patterns."""
        keys: list[str] = list(self._listeners.keys())
        keys.extend(pattern for _, pattern, _ in self._wildcard_listeners)
        return sorted(set(keys))
