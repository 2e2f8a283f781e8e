"""
EventRouter: Wildcard event-name matching for the Waypoint EventBus.

Supported Patterns
------------------
- Exact:        "tutorial.started" → matches only "tutorial.started"
- Global:       "*" → matches any event
- Prefix:       "tutorial.*" → matches "tutorial.started", "tutorial.step_changed"
- Suffix:       "*.completed" → matches "tutorial.completed", "tutorial.sequence_completed"
- Sandwich:     "tutorial.*.changed" → matches "tutorial.run.changed"

Notes
-----
- Patterns with repeated '*' are normalized ("**" → "*")
- Matching is case-sensitive
"""

from __future__ import annotations


class EventRouter:
    """
    Stateless wildcard matcher for event names.

    Examples
    --------
    >>> router = EventRouter()
    >>> router.matches("tutorial.started", "tutorial.*")
    True
    >>> router.matches("tutorial.started", "inbox.*")
    False
    """

    def matches(self, event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True

        if "*" not in pattern:
            return event_name == pattern

        while "**" in pattern:
            pattern = pattern.replace("**", "*")

        parts = pattern.split("*")

        if parts[0] and not event_name.startswith(parts[0]):
            return False

        if parts[-1] and not event_name.endswith(parts[-1]):
            return False

        # Middle pieces must appear in order after the prefix
        idx = len(parts[0])
        for mid in parts[1:-1]:
            if not mid:
                continue
            next_idx = event_name.find(mid, idx)
            if next_idx == -1:
                return False
            idx = next_idx + len(mid)

        # Prefix and suffix must not overlap
        return idx <= len(event_name) - len(parts[-1])
