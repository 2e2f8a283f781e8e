"""
Tutorial step domain model.

Purpose
-------
A step is one unit of guidance inside a tutorial sequence: a message to
acknowledge, a UI element to click, or a pointer to follow. Each step owns a
small forward-only state machine and knows how to present itself through a
presentation object and what it waits for before completing.

Responsibilities
----------------
- Track step state: PENDING -> ACTIVE -> COMPLETED | SKIPPED
- Render the variant through the presentation contract
- Suspend on the variant's completion condition, racing it against skip
- Provide an idempotent cleanup hook that runs at most once per run
- Notify `on_completed` observers when the step reaches a terminal state

Design Decisions
----------------
- **Skip unblocks execute**: `skip()` sets an internal asyncio.Event; the
  pending `execute()` races the presentation wait against it and returns as
  soon as either resolves.
- **Recyclable**: Step instances belong to a sequence definition and are
  reused across runs. `reset()` re-arms state, skip signal and cleanup
  guard; only the controller calls it, at the start of a fresh run.
- **Cancellation propagates**: Cancelling `execute()` cancels the internal
  waiter tasks and re-raises asyncio.CancelledError.

Variants
--------
- MessageStep: title + message, optionally waits for a tap
- HighlightStep: highlights a target, waits for a click on it (or a tap)
- PointerStep: shows a pointer at a screen position, waits for a tap
"""

from __future__ import annotations

import asyncio
from abc import abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional

from waypoint.core.logging.logger import get_logger
from waypoint.domain.models.base import (
    DomainValidationError,
    Entity,
    ValueObject,
    validate_non_negative,
    validate_not_empty,
)

if TYPE_CHECKING:
    from waypoint.modules.tutorial.presentation import TutorialPresentation

logger = get_logger(__name__)

StepObserver = Callable[["TutorialStep"], Any]


class StepState(Enum):
    """Lifecycle state of a tutorial step within a run."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        return self in (StepState.COMPLETED, StepState.SKIPPED)


class ScreenPosition(ValueObject):
    """Immutable 2D screen coordinate used by pointer steps."""

    def __init__(self, x: float, y: float) -> None:
        self._x = x
        self._y = y
        self._validate()

    def _validate(self) -> None:
        for name, value in (("x", self._x), ("y", self._y)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise DomainValidationError(
                    f"{name} must be a number, got {type(value).__name__}",
                    field=name,
                )

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    def __iter__(self):
        yield self._x
        yield self._y

    def __repr__(self) -> str:
        return f"ScreenPosition(x={self._x!r}, y={self._y!r})"


# ============================================================================
# BASE STEP
# ============================================================================


class TutorialStep(Entity):
    """
    Abstract base for tutorial steps.

    Subclasses implement `present()` (render through the presentation) and
    `wait_condition()` (the awaitable that completes the step, or None to
    complete immediately). They may override `on_cleanup()` to release
    anything `present()` acquired.

    Parameters
    ----------
    step_id : str
        Identifier, unique within its sequence
    title : Optional[str]
        Title to display
    message : Optional[str]
        Instructions to display
    can_skip : bool
        Whether `skip()` is honoured for this step
    delay_before : float
        Seconds to wait after activation, before execution
    delay_after : float
        Seconds to wait after completion, before cleanup

    Raises
    ------
    DomainValidationError
        If the identifier is empty or a delay is negative
    """

    def __init__(
        self,
        step_id: str,
        title: Optional[str] = None,
        message: Optional[str] = None,
        *,
        can_skip: bool = True,
        delay_before: float = 0.0,
        delay_after: float = 0.0,
    ) -> None:
        super().__init__(step_id)
        validate_non_negative(delay_before, "delay_before")
        validate_non_negative(delay_after, "delay_after")

        self._title = title
        self._message = message
        self._can_skip = can_skip
        self._delay_before = float(delay_before)
        self._delay_after = float(delay_after)

        self._state = StepState.PENDING
        self._skip_signal = asyncio.Event()
        self._cleaned_up = False

        self.on_completed: List[StepObserver] = []

    # ------------------------------------------------------------------ #
    # Read-only attributes
    # ------------------------------------------------------------------ #

    @property
    def step_id(self) -> str:
        return self.id

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def message(self) -> Optional[str]:
        return self._message

    @property
    def can_skip(self) -> bool:
        return self._can_skip

    @property
    def delay_before(self) -> float:
        return self._delay_before

    @property
    def delay_after(self) -> float:
        return self._delay_after

    @property
    def state(self) -> StepState:
        return self._state

    @property
    def is_cleaned_up(self) -> bool:
        return self._cleaned_up

    # ------------------------------------------------------------------ #
    # Variant hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    def present(self, presentation: TutorialPresentation) -> None:
        """Render this step through the presentation."""

    @abstractmethod
    def wait_condition(
        self, presentation: TutorialPresentation
    ) -> Optional[Awaitable[Any]]:
        """Return the awaitable that completes this step, or None."""

    def on_cleanup(self) -> None:
        """Release anything acquired by `present()`. Runs at most once per run."""

    # ------------------------------------------------------------------ #
    # State transitions
    # ------------------------------------------------------------------ #

    def activate(self) -> None:
        """Move PENDING -> ACTIVE. No-op from any other state."""
        if self._state is StepState.PENDING:
            self._state = StepState.ACTIVE
            logger.debug("Step activated", extra={"step_id": self.id})

    async def execute(self, presentation: TutorialPresentation) -> None:
        """
        Present the step and wait until it completes or is skipped.

        Raises
        ------
        asyncio.CancelledError
            If the surrounding run is cancelled while waiting.
        """
        self.activate()
        if self._state is not StepState.ACTIVE:
            return

        self.present(presentation)

        if self._state is StepState.ACTIVE:
            waiter = self.wait_condition(presentation)
            if waiter is not None:
                await self._wait_or_skip(waiter)

        self.complete()

    async def _wait_or_skip(self, waiter: Awaitable[Any]) -> None:
        wait_task = asyncio.ensure_future(waiter)
        skip_task = asyncio.ensure_future(self._skip_signal.wait())
        try:
            await asyncio.wait(
                {wait_task, skip_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (wait_task, skip_task):
                if not task.done():
                    task.cancel()

        if wait_task.done() and not wait_task.cancelled():
            # Surface presentation failures to the run.
            wait_task.result()

    def complete(self) -> None:
        """Move ACTIVE -> COMPLETED. No-op from terminal states."""
        if self._state is not StepState.ACTIVE:
            return
        self._state = StepState.COMPLETED
        logger.debug("Step completed", extra={"step_id": self.id})
        self._notify_completed()

    def skip(self) -> bool:
        """
        Skip this step if it is active and skippable.

        Returns
        -------
        bool
            True if the step moved to SKIPPED, False otherwise.
        """
        if not self._can_skip:
            logger.debug("Skip ignored, step is not skippable", extra={"step_id": self.id})
            return False
        if self._state is not StepState.ACTIVE:
            logger.debug(
                "Skip ignored, step is not active",
                extra={"step_id": self.id, "state": self._state.value},
            )
            return False

        self._state = StepState.SKIPPED
        self._skip_signal.set()
        logger.debug("Step skipped", extra={"step_id": self.id})
        self._notify_completed()
        return True

    def cleanup(self) -> None:
        """Run `on_cleanup()` once; later calls in the same run are no-ops."""
        if self._cleaned_up:
            return
        self._cleaned_up = True
        self.on_cleanup()

    def reset(self) -> None:
        """Return to PENDING and re-arm the skip signal and cleanup guard."""
        self._state = StepState.PENDING
        self._skip_signal = asyncio.Event()
        self._cleaned_up = False

    def _notify_completed(self) -> None:
        for observer in list(self.on_completed):
            try:
                observer(self)
            except Exception as exc:
                logger.error(
                    "Step completion observer failed",
                    extra={
                        "step_id": self.id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(step_id={self.id!r}, state={self._state.value})"


# ============================================================================
# VARIANTS
# ============================================================================


class MessageStep(TutorialStep):
    """Shows a title and message; completes on tap or immediately."""

    def __init__(
        self,
        step_id: str,
        title: Optional[str],
        message: Optional[str],
        wait_for_tap: bool = True,
        **options: Any,
    ) -> None:
        super().__init__(step_id, title, message, **options)
        self._wait_for_tap = wait_for_tap

    @property
    def wait_for_tap(self) -> bool:
        return self._wait_for_tap

    def present(self, presentation: TutorialPresentation) -> None:
        presentation.show_message(self.title, self.message)

    def wait_condition(
        self, presentation: TutorialPresentation
    ) -> Optional[Awaitable[Any]]:
        if not self._wait_for_tap:
            return None
        return presentation.wait_for_tap()


class HighlightStep(TutorialStep):
    """Highlights a UI element and waits for the player to click it."""

    def __init__(
        self,
        step_id: str,
        target_id: str,
        title: Optional[str] = None,
        message: Optional[str] = None,
        wait_for_target_click: bool = True,
        **options: Any,
    ) -> None:
        super().__init__(step_id, title, message, **options)
        validate_not_empty(target_id, "target_id")
        self._target_id = target_id
        self._wait_for_target_click = wait_for_target_click

    @property
    def target_id(self) -> str:
        return self._target_id

    @property
    def wait_for_target_click(self) -> bool:
        return self._wait_for_target_click

    def present(self, presentation: TutorialPresentation) -> None:
        presentation.show_message(self.title, self.message)
        presentation.highlight_target(self._target_id)

    def wait_condition(
        self, presentation: TutorialPresentation
    ) -> Optional[Awaitable[Any]]:
        if self._wait_for_target_click:
            return presentation.wait_for_target_click(self._target_id)
        return presentation.wait_for_tap()


class PointerStep(TutorialStep):
    """Shows a pointer at a screen position and waits for a tap."""

    def __init__(
        self,
        step_id: str,
        position: ScreenPosition,
        message: Optional[str] = None,
        animate: bool = True,
        **options: Any,
    ) -> None:
        super().__init__(step_id, None, message, **options)
        if not isinstance(position, ScreenPosition):
            position = ScreenPosition(*position)
        self._position = position
        self._animate = animate

    @property
    def position(self) -> ScreenPosition:
        return self._position

    @property
    def animate(self) -> bool:
        return self._animate

    def present(self, presentation: TutorialPresentation) -> None:
        presentation.show_message(None, self.message)
        presentation.show_pointer(self._position, self._animate)

    def wait_condition(
        self, presentation: TutorialPresentation
    ) -> Optional[Awaitable[Any]]:
        return presentation.wait_for_tap()
