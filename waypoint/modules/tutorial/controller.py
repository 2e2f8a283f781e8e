"""
Tutorial Controller
===================

Purpose
-------
Orchestrates tutorial runs: resolves sequences from a registry, drives the
step loop against a presentation, and exposes the control surface (skip,
skip-all, pause, resume, cancel) a host wires to its UI.

Domain
------
- Register and look up tutorial sequences by identifier
- Start a sequence (single-flight, completed sequences are not replayed)
- Execute steps in order with pre/post delays and pause handling
- Cancel a run mid-step with exactly-once step cleanup
- Report lifecycle through tutorial.* events

Events
------
- tutorial.started    {"sequence_id", "sequence"}
- tutorial.completed  {"sequence_id"}
- tutorial.cancelled  {"sequence_id"}
- tutorial.skipped    {"sequence_id"}
(plus the model's state_changed / step_changed / sequence_completed on the
same bus)

Cancellation Model
------------------
Each run executes in its own asyncio task, tracked by a run scope carrying a
cancel flag. `cancel()` is synchronous: it flags the scope, cancels the task,
cleans up the current step, moves the model to CANCELLED and hides the
overlay. The run task observes the cancellation at its next suspension point
and runs the step's cleanup on the way out (a no-op the second time).

If the caller awaiting `start()` is itself cancelled (for example by
`asyncio.wait_for`), the run is aborted through the same path and
`CancelledError` propagates to the caller. Any other error raised while the
run is active (a failing presentation, for instance) is logged, the run is
cancelled and `start()` returns False.

Known Limitation
----------------
Pause is observed between steps and inside pre/post delays only. A step
already waiting on player input keeps waiting while paused.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Tuple, Union

from waypoint.core.config.manager import ConfigManager
from waypoint.core.logging.logger import LogContext, get_logger
from waypoint.domain.models.sequence import TutorialSequence
from waypoint.domain.models.step import TutorialStep
from waypoint.modules.shared.base_service import BaseService
from waypoint.modules.tutorial.model import TutorialModel, TutorialState
from waypoint.modules.tutorial.presentation import NullPresentation

if TYPE_CHECKING:
    from logging import Logger

    from waypoint.core.event.bus import EventBus
    from waypoint.modules.tutorial.presentation import TutorialPresentation


@dataclass(eq=False)
class _RunScope:
    """Cancellation scope of one run."""

    sequence_id: str
    run_id: str
    view: TutorialPresentation
    task: Optional[asyncio.Task[None]] = None
    cancel_requested: bool = False


class TutorialController(BaseService):
    """
    Runs tutorial sequences against a presentation.

    Public Methods
    --------------
    - register_sequence() / unregister_sequence() / get_sequence()
    - get_eligible_sequences() -> Registered, not yet completed, by priority
    - start() -> Run a sequence to completion or cancellation
    - skip_current_step() / skip_all()
    - pause() / resume() / cancel()
    - load_completion_data() / get_completed_sequences() -> Persistence hooks
    - dispose() -> Cancel any run and drop registrations

    Args:
        model: Tutorial state model
        presentation: UI implementation; headless when None
        config_manager: Tunables (poll interval, headless wait)
        event_bus: Bus for notifications; defaults to the model's bus
        logger: Structured logger instance
    """

    def __init__(
        self,
        model: TutorialModel,
        presentation: Optional[TutorialPresentation] = None,
        *,
        config_manager: Optional[ConfigManager] = None,
        event_bus: Optional[EventBus] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        super().__init__(
            config_manager or ConfigManager(),
            event_bus or model.event_bus,
            logger or get_logger(__name__),
        )
        self._model = model
        self._presentation = presentation
        self._sequences: Dict[str, TutorialSequence] = {}
        self._scope: Optional[_RunScope] = None

    # ========================================================================
    # READ-THROUGH STATE
    # ========================================================================

    @property
    def model(self) -> TutorialModel:
        return self._model

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def presentation(self) -> Optional[TutorialPresentation]:
        return self._presentation

    @presentation.setter
    def presentation(self, presentation: Optional[TutorialPresentation]) -> None:
        # Takes effect from the next run.
        self._presentation = presentation

    @property
    def state(self) -> TutorialState:
        return self._model.state

    @property
    def is_running(self) -> bool:
        return self._model.is_running

    @property
    def is_paused(self) -> bool:
        return self._model.is_paused

    @property
    def current_step_index(self) -> int:
        return self._model.current_step_index

    @property
    def current_sequence_id(self) -> Optional[str]:
        sequence = self._model.current_sequence
        return sequence.id if sequence is not None else None

    @property
    def current_step(self) -> Optional[TutorialStep]:
        return self._model.current_step

    @property
    def progress(self) -> float:
        return self._model.progress

    # ========================================================================
    # REGISTRY
    # ========================================================================

    def register_sequence(self, sequence: Optional[TutorialSequence]) -> bool:
        """Register a sequence by id; a later registration with the same id wins."""
        if sequence is None:
            self.log.warning("Cannot register a null sequence")
            return False

        if sequence.id in self._sequences:
            self.log.debug(
                "Replacing registered sequence", extra={"sequence_id": sequence.id}
            )
        self._sequences[sequence.id] = sequence
        return True

    def unregister_sequence(self, sequence_id: str) -> bool:
        return self._sequences.pop(sequence_id, None) is not None

    def get_sequence(self, sequence_id: str) -> Optional[TutorialSequence]:
        return self._sequences.get(sequence_id)

    @property
    def registered_sequences(self) -> Tuple[TutorialSequence, ...]:
        return tuple(self._sequences.values())

    def get_eligible_sequences(self) -> Tuple[TutorialSequence, ...]:
        """
        Registered sequences not yet completed, highest priority first.

        Ties are broken by sequence id. The controller never starts one on
        its own; the host decides.
        """
        pending = [
            sequence
            for sequence in self._sequences.values()
            if not self._model.is_sequence_completed(sequence.id)
        ]
        pending.sort(key=lambda sequence: (-sequence.priority, sequence.id))
        return tuple(pending)

    # ========================================================================
    # RUN
    # ========================================================================

    def _resolve_sequence(
        self, sequence_or_id: Union[TutorialSequence, str, None]
    ) -> Optional[TutorialSequence]:
        if sequence_or_id is None:
            self.log.warning("Cannot start a null sequence")
            return None

        if isinstance(sequence_or_id, TutorialSequence):
            return sequence_or_id

        sequence = self._sequences.get(sequence_or_id)
        if sequence is None:
            self.log.warning(
                "Sequence not found", extra={"sequence_id": sequence_or_id}
            )
        return sequence

    def _poll_interval(self) -> float:
        return float(self.get_config("tutorial.pause_poll_interval_seconds", 0.05))

    def _view_for_run(self) -> TutorialPresentation:
        if self._presentation is not None:
            return self._presentation
        return NullPresentation(
            float(self.get_config("tutorial.headless_wait_seconds", 0.0))
        )

    async def start(
        self,
        sequence_or_id: Union[TutorialSequence, str, None],
        start_step: int = 0,
    ) -> bool:
        """
        Run a sequence until it completes or is cancelled.

        Args:
            sequence_or_id: Sequence instance or registered identifier
            start_step: Number of leading steps to fast-forward over

        Returns:
            True if the sequence ran to completion, False if the start was
            rejected, or the run was cancelled, skipped or aborted by a
            presentation error (logged, never raised).

        Raises:
            asyncio.CancelledError: If the awaiting caller is cancelled. The
                run is aborted (state CANCELLED) before this propagates.

        Example:
            >>> controller.register_sequence(onboarding)
            >>> completed = await controller.start("onboarding")
        """
        sequence = self._resolve_sequence(sequence_or_id)
        if sequence is None:
            return False

        if self._model.is_sequence_completed(sequence.id):
            self.log.info(
                "Sequence already completed", extra={"sequence_id": sequence.id}
            )
            return False

        if self._model.is_active or self._scope is not None:
            self.log.warning(
                "Tutorial already running",
                extra={
                    "sequence_id": sequence.id,
                    "active_sequence_id": self.current_sequence_id,
                },
            )
            return False

        sequence.reset_steps()
        if not self._model.start_sequence(sequence):
            return False

        view = self._view_for_run()
        scope = _RunScope(
            sequence_id=sequence.id, run_id=uuid.uuid4().hex[:12], view=view
        )
        self._scope = scope

        self.log_operation(
            "start",
            sequence_id=sequence.id,
            run_id=scope.run_id,
            start_step=start_step,
            step_count=sequence.step_count,
        )

        try:
            self.emit_event(
                "tutorial.started", {"sequence_id": sequence.id, "sequence": sequence}
            )
            # A started listener may already have cancelled the run.
            if not scope.cancel_requested:
                view.show()
                view.set_progress(0.0)

            for _ in range(start_step):
                if scope.cancel_requested or not self._model.next_step():
                    break

            if not scope.cancel_requested:
                await self._run(scope)
        except Exception as exc:
            # Presentation failures stop the run; they never reach the host.
            self.log_error(
                "start", exc, sequence_id=scope.sequence_id, run_id=scope.run_id
            )
            if not scope.cancel_requested:
                self.cancel()
        finally:
            if self._scope is scope:
                self._scope = None
            if not scope.cancel_requested:
                view.hide()

        completed = (
            not scope.cancel_requested
            and self._model.state is TutorialState.COMPLETED
            and self._model.is_sequence_completed(scope.sequence_id)
        )
        if completed:
            self.emit_event("tutorial.completed", {"sequence_id": scope.sequence_id})
            self.log.info(
                "Tutorial completed",
                extra={"sequence_id": scope.sequence_id, "run_id": scope.run_id},
            )
        return completed

    async def _run(self, scope: _RunScope) -> None:
        with LogContext(
            sequence_id=scope.sequence_id, run_id=scope.run_id, component="tutorial"
        ):
            scope.task = asyncio.create_task(
                self._execute_steps(scope),
                name=f"tutorial-{scope.sequence_id}-{scope.run_id}",
            )

        try:
            await scope.task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            caller_cancelled = current is not None and current.cancelling() > 0
            if not scope.cancel_requested:
                self.cancel()
            if caller_cancelled:
                self.log.warning(
                    "Tutorial run aborted by caller cancellation",
                    extra={"sequence_id": scope.sequence_id, "run_id": scope.run_id},
                )
                raise

    def _checkpoint(self, scope: _RunScope) -> None:
        if scope.cancel_requested:
            raise asyncio.CancelledError()

    async def _execute_steps(self, scope: _RunScope) -> None:
        model = self._model
        view = scope.view

        while not scope.cancel_requested and model.next_step():
            step = model.current_step
            if step is None:
                continue

            with LogContext(step_id=step.id):
                try:
                    step.activate()
                    await self._delay(step.delay_before, scope)

                    while model.is_paused:
                        await asyncio.sleep(self._poll_interval())
                    self._checkpoint(scope)

                    await step.execute(view)
                    self._checkpoint(scope)

                    model.complete_current_step()
                    view.set_progress(model.progress)

                    await self._delay(step.delay_after, scope)
                finally:
                    step.cleanup()
                    if not scope.cancel_requested:
                        view.clear_highlight()
                        view.hide_pointer()

    async def _delay(self, seconds: float, scope: _RunScope) -> None:
        """Sleep for `seconds` of unpaused time."""
        if seconds <= 0:
            return

        loop = asyncio.get_running_loop()
        remaining = seconds
        while remaining > 0:
            poll = self._poll_interval()
            if self._model.is_paused:
                await asyncio.sleep(poll)
            else:
                started = loop.time()
                await asyncio.sleep(min(remaining, poll))
                remaining -= loop.time() - started
            self._checkpoint(scope)

    # ========================================================================
    # CONTROL
    # ========================================================================

    def skip_current_step(self) -> bool:
        """Skip the active step if it allows skipping."""
        step = self._model.current_step
        if step is None or not self._model.is_active:
            self.log.debug("No active step to skip")
            return False
        if not step.can_skip:
            self.log.debug("Step cannot be skipped", extra={"step_id": step.id})
            return False
        return step.skip()

    def skip_all(self) -> bool:
        """
        Abandon the current sequence and record it as completed.

        Rejected (run unaffected) when the sequence disallows skip-all.
        """
        sequence = self._model.current_sequence
        if sequence is None or not self._model.is_active:
            self.log.debug("No active sequence to skip")
            return False

        if not sequence.can_skip_all:
            self.log.warning(
                "Sequence cannot be skipped", extra={"sequence_id": sequence.id}
            )
            return False

        sequence_id = sequence.id
        self.cancel()
        self._model.mark_sequence_completed(sequence_id)
        self.emit_event("tutorial.skipped", {"sequence_id": sequence_id})
        self.log_operation("skip_all", sequence_id=sequence_id)
        return True

    def pause(self) -> bool:
        paused = self._model.pause()
        if paused:
            self.log_operation("pause", sequence_id=self.current_sequence_id)
        return paused

    def resume(self) -> bool:
        resumed = self._model.resume()
        if resumed:
            self.log_operation("resume", sequence_id=self.current_sequence_id)
        return resumed

    def cancel(self) -> bool:
        """
        Abort the active run.

        Returns:
            False if nothing is running or paused.
        """
        if not self._model.is_active:
            self.log.debug("Cancel ignored, no active tutorial")
            return False

        sequence_id = self.current_sequence_id
        scope = self._scope
        if scope is not None:
            scope.cancel_requested = True
            self._scope = None
            if scope.task is not None and not scope.task.done():
                scope.task.cancel()

        step = self._model.current_step
        if step is not None:
            step.cleanup()

        self._model.cancel()
        self.emit_event("tutorial.cancelled", {"sequence_id": sequence_id})
        self.log_operation("cancel", sequence_id=sequence_id)

        view = scope.view if scope is not None else self._presentation
        if view is not None:
            view.hide()
        return True

    # ========================================================================
    # PERSISTENCE BOUNDARY
    # ========================================================================

    def is_sequence_completed(self, sequence_id: str) -> bool:
        return self._model.is_sequence_completed(sequence_id)

    def get_completed_sequences(self) -> frozenset[str]:
        return self._model.get_completed_sequences()

    def load_completion_data(self, sequence_ids: Optional[Iterable[str]]) -> None:
        self._model.load_completion_data(sequence_ids)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def dispose(self) -> None:
        """Cancel any in-flight run and drop registered sequences."""
        self.cancel()
        self._sequences.clear()
        self.log.debug("Tutorial controller disposed")
