"""
Tutorial Model
==============

Purpose
-------
Holds the state of the tutorial system: the lifecycle state, the sequence
being run, the step cursor and the sets of completed sequence and step
identifiers. It is a plain synchronous state machine; all suspension and
cancellation live in the controller.

Responsibilities
----------------
- Enforce single-flight: at most one sequence is active at a time
- Advance the step cursor and detect overrun (sequence completion)
- Track completed steps and sequences (set semantics)
- Expose persistence hooks for completion data
- Emit state, step and completion notifications on the EventBus

Events
------
- tutorial.state_changed       {"state", "previous_state"}
- tutorial.step_changed        {"index", "step", "step_id", "sequence_id"}
- tutorial.sequence_completed  {"sequence_id"}

Notifications are emitted synchronously, before the mutating call returns.
On overrun the order is `sequence_completed` then `state_changed`.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Set

from waypoint.core.event.bus import EventBus
from waypoint.core.logging.logger import get_logger
from waypoint.domain.models.sequence import TutorialSequence
from waypoint.domain.models.step import TutorialStep

logger = get_logger(__name__)


class TutorialState(Enum):
    """State of the tutorial system."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TutorialModel:
    """
    Tutorial state machine plus completion bookkeeping.

    Parameters
    ----------
    event_bus : Optional[EventBus]
        Bus used for notifications. A private bus is created when omitted.
    """

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._events = event_bus or EventBus()
        self._state = TutorialState.IDLE
        self._current_sequence: Optional[TutorialSequence] = None
        self._current_step_index = -1
        self._completed_sequences: Set[str] = set()
        self._completed_steps: Set[str] = set()

    # ------------------------------------------------------------------ #
    # Read-only state
    # ------------------------------------------------------------------ #

    @property
    def event_bus(self) -> EventBus:
        return self._events

    @property
    def state(self) -> TutorialState:
        return self._state

    @property
    def current_sequence(self) -> Optional[TutorialSequence]:
        return self._current_sequence

    @property
    def current_step_index(self) -> int:
        return self._current_step_index

    @property
    def current_step(self) -> Optional[TutorialStep]:
        if self._current_sequence is None:
            return None
        return self._current_sequence.get_step(self._current_step_index)

    @property
    def is_running(self) -> bool:
        return self._state is TutorialState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._state is TutorialState.PAUSED

    @property
    def is_active(self) -> bool:
        return self._state in (TutorialState.RUNNING, TutorialState.PAUSED)

    @property
    def progress(self) -> float:
        """Fraction of steps reached in the current sequence, in [0, 1]."""
        sequence = self._current_sequence
        if sequence is None or sequence.step_count == 0:
            return 0.0
        fraction = (self._current_step_index + 1) / sequence.step_count
        return min(max(fraction, 0.0), 1.0)

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def _set_state(self, new_state: TutorialState) -> None:
        previous = self._state
        if previous is new_state:
            return
        self._state = new_state
        logger.debug(
            "Tutorial state changed",
            extra={"state": new_state.value, "previous_state": previous.value},
        )
        self._events.emit(
            "tutorial.state_changed",
            {"state": new_state, "previous_state": previous},
        )

    def start_sequence(self, sequence: TutorialSequence) -> bool:
        """
        Begin tracking `sequence` as the active run.

        Returns
        -------
        bool
            False if another sequence is already running or paused.
        """
        if self.is_active:
            logger.warning(
                "Cannot start sequence while another is active",
                extra={
                    "sequence_id": sequence.id,
                    "active_sequence_id": (
                        self._current_sequence.id if self._current_sequence else None
                    ),
                    "state": self._state.value,
                },
            )
            return False

        self._current_sequence = sequence
        self._current_step_index = -1
        self._set_state(TutorialState.RUNNING)
        return True

    def next_step(self) -> bool:
        """
        Advance the cursor.

        Returns
        -------
        bool
            True if a step is now current; False if there is no sequence or
            the sequence has just been completed by overrun.
        """
        sequence = self._current_sequence
        if sequence is None:
            return False

        self._current_step_index += 1

        if self._current_step_index >= sequence.step_count:
            self.complete_current_sequence()
            return False

        step = self.current_step
        self._events.emit(
            "tutorial.step_changed",
            {
                "index": self._current_step_index,
                "step": step,
                "step_id": step.id if step else None,
                "sequence_id": sequence.id,
            },
        )
        return True

    def complete_current_step(self) -> None:
        step = self.current_step
        if step is not None:
            self._completed_steps.add(step.id)

    def complete_current_sequence(self) -> None:
        sequence = self._current_sequence
        if sequence is not None:
            self._completed_sequences.add(sequence.id)
            self._events.emit(
                "tutorial.sequence_completed", {"sequence_id": sequence.id}
            )

        self._current_sequence = None
        self._current_step_index = -1
        self._set_state(TutorialState.COMPLETED)

    def cancel(self) -> bool:
        """
        Abort the active run.

        Returns
        -------
        bool
            False (and no change) unless a run is RUNNING or PAUSED.
        """
        if not self.is_active:
            return False

        self._current_sequence = None
        self._current_step_index = -1
        self._set_state(TutorialState.CANCELLED)
        return True

    def pause(self) -> bool:
        if not self.is_running:
            return False
        self._set_state(TutorialState.PAUSED)
        return True

    def resume(self) -> bool:
        if not self.is_paused:
            return False
        self._set_state(TutorialState.RUNNING)
        return True

    # ------------------------------------------------------------------ #
    # Completion queries & persistence hooks
    # ------------------------------------------------------------------ #

    def is_sequence_completed(self, sequence_id: str) -> bool:
        return sequence_id in self._completed_sequences

    def is_step_completed(self, step_id: str) -> bool:
        return step_id in self._completed_steps

    def mark_sequence_completed(self, sequence_id: str) -> None:
        self._completed_sequences.add(sequence_id)

    def get_completed_sequences(self) -> frozenset[str]:
        return frozenset(self._completed_sequences)

    def get_completed_steps(self) -> frozenset[str]:
        return frozenset(self._completed_steps)

    def load_completion_data(self, sequence_ids: Optional[Iterable[str]]) -> None:
        """Replace the completed-sequence set. None clears it."""
        self._completed_sequences = set(sequence_ids or ())
        logger.debug(
            "Completion data loaded",
            extra={"completed_count": len(self._completed_sequences)},
        )
