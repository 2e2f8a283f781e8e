"""
Event System for Waypoint.

Instance-based EventBus plus its supporting types. There is no global bus:
the host creates one per tutorial-capable session (or lets TutorialModel
create it) and passes it by reference.
"""

from .bus import EventBus
from .context import apply_event_log_context
from .router import EventRouter
from .types import (
    CallbackType,
    EventListener,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "EventRouter",
    "EventPayload",
    "ListenerPriority",
    "EventListener",
    "CallbackType",
    "apply_event_log_context",
]
