"""
Tutorial Presentation Contract
==============================

Purpose
-------
Defines the boundary between the tutorial engine and whatever renders it.
The engine never draws anything; it calls a presentation object to show the
overlay, messages, highlights and pointers, and awaits it for player input.

Implementations
---------------
- TutorialPresentation: structural Protocol a host UI implements
- NullPresentation: headless fallback; renders nothing, waits resolve after
  a fixed delay so runs still progress
- SignalPresentation: in-memory implementation that records what is shown
  and resolves waits from host input (`tap`, `click_target`,
  `skip_requested`). Hosts can subclass it and render in the hooks, or drive
  it directly from their input layer.

Input policy (SignalPresentation)
---------------------------------
A click on a target also counts as a generic tap, so a step waiting for a tap
anywhere is satisfied by a click on any element. A skip request resolves
pending tap waits as well.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

from waypoint.core.logging.logger import get_logger
from waypoint.domain.models.step import ScreenPosition

logger = get_logger(__name__)


@runtime_checkable
class TutorialPresentation(Protocol):
    def show(self) -> None: ...

    def hide(self) -> None: ...

    def show_message(self, title: Optional[str], message: Optional[str]) -> None: ...

    def hide_message(self) -> None: ...

    def highlight_target(self, target_id: str) -> None: ...

    def clear_highlight(self) -> None: ...

    def show_pointer(self, position: ScreenPosition, animate: bool = True) -> None: ...

    def hide_pointer(self) -> None: ...

    def set_progress(self, fraction: float) -> None: ...

    async def wait_for_tap(self) -> None: ...

    async def wait_for_target_click(self, target_id: str) -> None: ...


class NullPresentation:
    """
    Headless presentation.

    Every render call is a no-op; both waits resolve after `wait_seconds`
    (0.0 yields one scheduler tick).
    """

    def __init__(self, wait_seconds: float = 0.0) -> None:
        self.wait_seconds = wait_seconds

    def show(self) -> None:
        pass

    def hide(self) -> None:
        pass

    def show_message(self, title: Optional[str], message: Optional[str]) -> None:
        pass

    def hide_message(self) -> None:
        pass

    def highlight_target(self, target_id: str) -> None:
        pass

    def clear_highlight(self) -> None:
        pass

    def show_pointer(self, position: ScreenPosition, animate: bool = True) -> None:
        pass

    def hide_pointer(self) -> None:
        pass

    def set_progress(self, fraction: float) -> None:
        pass

    async def wait_for_tap(self) -> None:
        await asyncio.sleep(self.wait_seconds)

    async def wait_for_target_click(self, target_id: str) -> None:
        await asyncio.sleep(self.wait_seconds)


class SignalPresentation:
    """
    In-memory presentation driven by host input.

    Attributes
    ----------
    visible : bool
        Whether the overlay is shown
    message : Optional[Tuple[Optional[str], Optional[str]]]
        Current (title, message), or None
    highlighted_target : Optional[str]
        Currently highlighted element id
    pointer : Optional[Tuple[ScreenPosition, bool]]
        Current (position, animate), or None
    progress : float
        Last fraction passed to `set_progress`
    history : List[Tuple[str, tuple]]
        Every render call in order, as (method_name, args)

    Examples
    --------
    >>> presentation = SignalPresentation()
    >>> task = asyncio.create_task(controller.start("onboarding"))
    >>> ...
    >>> presentation.tap()
    1
    """

    def __init__(self) -> None:
        self.visible = False
        self.message: Optional[Tuple[Optional[str], Optional[str]]] = None
        self.highlighted_target: Optional[str] = None
        self.pointer: Optional[Tuple[ScreenPosition, bool]] = None
        self.progress = 0.0
        self.history: List[Tuple[str, tuple]] = []

        self._tap_waiters: List[asyncio.Future[None]] = []
        self._target_waiters: Dict[str, List[asyncio.Future[None]]] = {}

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def _record(self, method: str, *args: object) -> None:
        self.history.append((method, args))

    def show(self) -> None:
        self._record("show")
        self.visible = True

    def hide(self) -> None:
        self._record("hide")
        self.visible = False
        self.message = None
        self.highlighted_target = None
        self.pointer = None

    def show_message(self, title: Optional[str], message: Optional[str]) -> None:
        self._record("show_message", title, message)
        self.message = (title, message)

    def hide_message(self) -> None:
        self._record("hide_message")
        self.message = None

    def highlight_target(self, target_id: str) -> None:
        self._record("highlight_target", target_id)
        self.highlighted_target = target_id

    def clear_highlight(self) -> None:
        self._record("clear_highlight")
        self.highlighted_target = None

    def show_pointer(self, position: ScreenPosition, animate: bool = True) -> None:
        self._record("show_pointer", position, animate)
        self.pointer = (position, animate)

    def hide_pointer(self) -> None:
        self._record("hide_pointer")
        self.pointer = None

    def set_progress(self, fraction: float) -> None:
        self._record("set_progress", fraction)
        self.progress = fraction

    # ------------------------------------------------------------------ #
    # Waiting
    # ------------------------------------------------------------------ #

    @property
    def waiting_for_tap(self) -> bool:
        return any(not f.done() for f in self._tap_waiters)

    @property
    def waiting_targets(self) -> frozenset[str]:
        return frozenset(
            target
            for target, waiters in self._target_waiters.items()
            if any(not f.done() for f in waiters)
        )

    async def _wait(self, bucket: List[asyncio.Future[None]]) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        bucket.append(future)
        try:
            await future
        finally:
            if future in bucket:
                bucket.remove(future)

    async def wait_for_tap(self) -> None:
        await self._wait(self._tap_waiters)

    async def wait_for_target_click(self, target_id: str) -> None:
        bucket = self._target_waiters.setdefault(target_id, [])
        try:
            await self._wait(bucket)
        finally:
            if not bucket and self._target_waiters.get(target_id) is bucket:
                del self._target_waiters[target_id]

    # ------------------------------------------------------------------ #
    # Host input
    # ------------------------------------------------------------------ #

    @staticmethod
    def _resolve(waiters: List[asyncio.Future[None]]) -> int:
        resolved = 0
        for future in list(waiters):
            if not future.done():
                future.set_result(None)
                resolved += 1
        return resolved

    def tap(self) -> int:
        """Resolve every pending tap wait. Returns how many were resolved."""
        return self._resolve(self._tap_waiters)

    def click_target(self, target_id: str) -> int:
        """
        Resolve waits on `target_id`, plus pending tap waits.

        Returns
        -------
        int
            Number of waits resolved.
        """
        resolved = self._resolve(self._target_waiters.get(target_id, []))
        resolved += self._resolve(self._tap_waiters)
        logger.debug(
            "Target clicked",
            extra={"target_id": target_id, "resolved": resolved},
        )
        return resolved

    def skip_requested(self) -> int:
        """Skip-button hook; resolves pending tap waits."""
        return self._resolve(self._tap_waiters)
