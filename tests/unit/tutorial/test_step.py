"""
Unit Tests for Tutorial Steps
=============================

Test Coverage
-------------
- Construction validation (identifiers, delays, positions)
- State transitions: activate, complete, skip, reset
- Variant rendering and completion conditions
- Skip unblocking a pending execute
- Idempotent cleanup
- Cancellation of a waiting execute
- Completion observers

Testing Strategy
----------------
- AAA pattern (Arrange, Act, Assert)
- Player input simulated through SignalPresentation
"""

import asyncio

import pytest

from tests.conftest import RecordingStep, wait_until
from waypoint.domain.models.base import DomainValidationError
from waypoint.domain.models.step import (
    HighlightStep,
    MessageStep,
    PointerStep,
    ScreenPosition,
    StepState,
)
from waypoint.modules.tutorial.presentation import NullPresentation, SignalPresentation


# ============================================================================
# CONSTRUCTION
# ============================================================================


@pytest.mark.unit
@pytest.mark.tutorial
class TestStepConstruction:
    """Authoring-time validation."""

    def test_new_step_is_pending_with_defaults(self):
        # Arrange & Act
        step = MessageStep("welcome", "Welcome", "Hello")

        # Assert
        assert step.state is StepState.PENDING
        assert step.step_id == "welcome"
        assert step.can_skip is True
        assert step.delay_before == 0.0
        assert step.delay_after == 0.0

    def test_empty_identifier_rejected(self):
        with pytest.raises(DomainValidationError):
            MessageStep("", "Title", "Body")

    def test_negative_delay_rejected(self):
        with pytest.raises(DomainValidationError) as exc_info:
            MessageStep("a", "T", "M", delay_before=-1)

        assert exc_info.value.field == "delay_before"

    def test_highlight_requires_target(self):
        with pytest.raises(DomainValidationError):
            HighlightStep("h", target_id="")

    def test_pointer_accepts_tuple_position(self):
        step = PointerStep("p", (10, 20))

        assert step.position == ScreenPosition(10, 20)
        assert step.title is None

    def test_screen_position_equality_and_hash(self):
        assert ScreenPosition(1.0, 2.0) == ScreenPosition(1.0, 2.0)
        assert len({ScreenPosition(1.0, 2.0), ScreenPosition(1.0, 2.0)}) == 1


# ============================================================================
# STATE TRANSITIONS
# ============================================================================


@pytest.mark.unit
@pytest.mark.tutorial
class TestStepTransitions:
    """Forward-only state machine."""

    def test_activate_only_from_pending(self):
        step = MessageStep("a", "T", "M")
        step.activate()
        step.complete()

        # Act
        step.activate()

        # Assert
        assert step.state is StepState.COMPLETED

    def test_skip_active_skippable_step(self):
        step = MessageStep("a", "T", "M")
        step.activate()

        assert step.skip() is True
        assert step.state is StepState.SKIPPED

    def test_skip_non_skippable_is_noop(self):
        step = MessageStep("a", "T", "M", can_skip=False)
        step.activate()

        assert step.skip() is False
        assert step.state is StepState.ACTIVE

    def test_skip_pending_step_is_noop(self):
        step = MessageStep("a", "T", "M")

        assert step.skip() is False
        assert step.state is StepState.PENDING

    def test_complete_does_not_override_skip(self):
        step = MessageStep("a", "T", "M")
        step.activate()
        step.skip()

        step.complete()

        assert step.state is StepState.SKIPPED

    def test_reset_rearms_step(self):
        step = RecordingStep("a")
        step.activate()
        step.skip()
        step.cleanup()

        # Act
        step.reset()

        # Assert
        assert step.state is StepState.PENDING
        assert step.is_cleaned_up is False

    def test_completion_observers_notified_once(self):
        step = MessageStep("a", "T", "M")
        seen = []
        step.on_completed.append(seen.append)
        step.activate()

        step.complete()
        step.complete()

        assert seen == [step]

    def test_failing_observer_does_not_block_others(self):
        step = MessageStep("a", "T", "M")
        seen = []

        def broken(_step):
            raise RuntimeError("observer failure")

        step.on_completed.extend([broken, seen.append])
        step.activate()

        step.skip()

        assert seen == [step]


# ============================================================================
# CLEANUP
# ============================================================================


@pytest.mark.unit
@pytest.mark.tutorial
class TestStepCleanup:
    def test_cleanup_runs_hook_once(self):
        step = RecordingStep("a")

        step.cleanup()
        step.cleanup()

        assert step.cleanup_calls == 1

    def test_cleanup_safe_without_execute(self):
        step = RecordingStep("a")

        step.cleanup()

        assert step.state is StepState.PENDING
        assert step.cleanup_calls == 1


# ============================================================================
# EXECUTION
# ============================================================================


@pytest.mark.unit
@pytest.mark.tutorial
@pytest.mark.asyncio
class TestStepExecution:
    """Variant rendering and completion conditions."""

    async def test_message_step_waits_for_tap(self):
        presentation = SignalPresentation()
        step = MessageStep("welcome", "Welcome", "Tap to continue")

        task = asyncio.create_task(step.execute(presentation))
        await wait_until(lambda: presentation.waiting_for_tap)

        # Assert still waiting
        assert step.state is StepState.ACTIVE
        assert presentation.message == ("Welcome", "Tap to continue")

        # Act
        presentation.tap()
        await task

        assert step.state is StepState.COMPLETED

    async def test_message_step_without_tap_completes_immediately(self):
        presentation = SignalPresentation()
        step = MessageStep("info", "Info", "No input needed", wait_for_tap=False)

        await step.execute(presentation)

        assert step.state is StepState.COMPLETED
        assert presentation.waiting_for_tap is False

    async def test_highlight_step_waits_for_target_click(self):
        presentation = SignalPresentation()
        step = HighlightStep("play", target_id="playButton", message="Tap Play")

        task = asyncio.create_task(step.execute(presentation))
        await wait_until(lambda: "playButton" in presentation.waiting_targets)
        assert presentation.highlighted_target == "playButton"

        # A generic tap does not satisfy a target wait
        presentation.tap()
        await asyncio.sleep(0)
        assert not task.done()

        presentation.click_target("playButton")
        await task

        assert step.state is StepState.COMPLETED

    async def test_highlight_step_can_wait_for_generic_tap(self):
        presentation = SignalPresentation()
        step = HighlightStep("h", target_id="shop", wait_for_target_click=False)

        task = asyncio.create_task(step.execute(presentation))
        await wait_until(lambda: presentation.waiting_for_tap)
        presentation.tap()
        await task

        assert step.state is StepState.COMPLETED

    async def test_pointer_step_shows_pointer(self):
        presentation = SignalPresentation()
        step = PointerStep("p", ScreenPosition(5, 7), message="Here", animate=False)

        task = asyncio.create_task(step.execute(presentation))
        await wait_until(lambda: presentation.waiting_for_tap)

        assert presentation.pointer == (ScreenPosition(5, 7), False)
        assert presentation.message == (None, "Here")

        presentation.tap()
        await task
        assert step.state is StepState.COMPLETED

    async def test_skip_unblocks_pending_execute(self):
        presentation = SignalPresentation()
        step = MessageStep("a", "T", "M")
        task = asyncio.create_task(step.execute(presentation))
        await wait_until(lambda: presentation.waiting_for_tap)

        # Act
        assert step.skip() is True
        await task

        # Assert
        assert step.state is StepState.SKIPPED
        await wait_until(lambda: not presentation.waiting_for_tap)

    async def test_skip_before_execute_skips_presentation(self):
        presentation = SignalPresentation()
        step = MessageStep("a", "T", "M")
        step.activate()
        step.skip()

        await step.execute(presentation)

        assert presentation.history == []

    async def test_cancel_propagates_and_releases_waiter(self):
        presentation = SignalPresentation()
        step = MessageStep("a", "T", "M")
        task = asyncio.create_task(step.execute(presentation))
        await wait_until(lambda: presentation.waiting_for_tap)

        # Act
        task.cancel()

        # Assert
        with pytest.raises(asyncio.CancelledError):
            await task
        assert step.state is StepState.ACTIVE
        await wait_until(lambda: not presentation.waiting_for_tap)

    async def test_presentation_failure_propagates(self, mocker):
        presentation = NullPresentation()
        mocker.patch.object(
            presentation, "wait_for_tap", side_effect=RuntimeError("renderer gone")
        )
        step = MessageStep("a", "T", "M")

        with pytest.raises(RuntimeError, match="renderer gone"):
            await step.execute(presentation)

    async def test_null_presentation_completes_after_tick(self):
        step = PointerStep("p", (0, 0))

        await step.execute(NullPresentation())

        assert step.state is StepState.COMPLETED
