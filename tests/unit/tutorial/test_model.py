"""
Unit Tests for TutorialModel
============================

Test Coverage
-------------
- Single-flight start rules
- Step cursor advance and overrun completion
- Notification payloads and ordering
- Pause/resume/cancel guards
- Progress computation
- Completion persistence hooks
"""

import pytest

from tests.conftest import event_names
from waypoint.modules.tutorial.model import TutorialModel, TutorialState


@pytest.mark.unit
@pytest.mark.tutorial
class TestModelStart:
    def test_initial_state(self, model):
        assert model.state is TutorialState.IDLE
        assert model.current_sequence is None
        assert model.current_step_index == -1
        assert model.current_step is None
        assert model.progress == 0.0

    def test_start_sequence(self, model, onboarding, recorded):
        # Act
        started = model.start_sequence(onboarding)

        # Assert
        assert started is True
        assert model.state is TutorialState.RUNNING
        assert model.current_sequence is onboarding
        assert model.current_step_index == -1
        assert recorded == [
            (
                "tutorial.state_changed",
                {"state": TutorialState.RUNNING, "previous_state": TutorialState.IDLE},
            )
        ]

    def test_start_rejected_while_running(self, model, onboarding, make_sequence):
        model.start_sequence(onboarding)

        assert model.start_sequence(make_sequence("other")) is False
        assert model.current_sequence is onboarding

    def test_start_rejected_while_paused(self, model, onboarding, make_sequence):
        model.start_sequence(onboarding)
        model.pause()

        assert model.start_sequence(make_sequence("other")) is False
        assert model.state is TutorialState.PAUSED

    def test_start_allowed_after_cancel(self, model, onboarding, make_sequence):
        model.start_sequence(onboarding)
        model.cancel()

        assert model.start_sequence(make_sequence("other")) is True

    def test_creates_private_bus_when_omitted(self):
        assert TutorialModel().event_bus is not None


@pytest.mark.unit
@pytest.mark.tutorial
class TestModelAdvance:
    def test_next_step_without_sequence(self, model):
        assert model.next_step() is False

    def test_next_step_emits_step_changed(self, model, onboarding, recorded):
        model.start_sequence(onboarding)
        recorded.clear()

        # Act
        assert model.next_step() is True

        # Assert
        name, payload = recorded[0]
        assert name == "tutorial.step_changed"
        assert payload["index"] == 0
        assert payload["step"] is onboarding.get_step(0)
        assert payload["step_id"] == "welcome"
        assert payload["sequence_id"] == "onboarding"
        assert model.current_step.id == "welcome"

    def test_overrun_completes_sequence(self, model, onboarding, recorded):
        model.start_sequence(onboarding)
        model.next_step()
        model.next_step()
        recorded.clear()

        # Act
        advanced = model.next_step()

        # Assert
        assert advanced is False
        assert model.state is TutorialState.COMPLETED
        assert model.is_sequence_completed("onboarding")
        assert model.current_sequence is None
        assert model.current_step_index == -1
        assert event_names(recorded) == [
            "tutorial.sequence_completed",
            "tutorial.state_changed",
        ]
        assert recorded[0][1] == {"sequence_id": "onboarding"}

    def test_empty_sequence_completes_on_first_advance(self, model, make_sequence):
        model.start_sequence(make_sequence("empty", count=0))

        assert model.next_step() is False
        assert model.is_sequence_completed("empty")

    def test_complete_current_step_is_idempotent(self, model, onboarding):
        model.start_sequence(onboarding)
        model.next_step()

        model.complete_current_step()
        model.complete_current_step()

        assert model.get_completed_steps() == frozenset({"welcome"})

    def test_complete_current_step_without_step(self, model):
        model.complete_current_step()

        assert model.get_completed_steps() == frozenset()


@pytest.mark.unit
@pytest.mark.tutorial
class TestModelGuards:
    def test_pause_and_resume(self, model, onboarding):
        model.start_sequence(onboarding)

        assert model.pause() is True
        assert model.is_paused
        assert model.is_active
        assert model.resume() is True
        assert model.is_running

    def test_resume_when_not_paused_is_noop(self, model, onboarding, recorded):
        model.start_sequence(onboarding)
        recorded.clear()

        assert model.resume() is False
        assert recorded == []

    def test_pause_when_idle_is_noop(self, model):
        assert model.pause() is False
        assert model.state is TutorialState.IDLE

    def test_cancel_from_running(self, model, onboarding):
        model.start_sequence(onboarding)
        model.next_step()

        assert model.cancel() is True
        assert model.state is TutorialState.CANCELLED
        assert model.current_sequence is None
        assert not model.is_sequence_completed("onboarding")

    def test_cancel_when_idle_is_noop(self, model, recorded):
        assert model.cancel() is False
        assert model.state is TutorialState.IDLE
        assert recorded == []

    def test_state_changed_only_on_actual_change(self, model, onboarding, recorded):
        model.start_sequence(onboarding)
        model.pause()
        model.pause()

        assert event_names(recorded).count("tutorial.state_changed") == 2


@pytest.mark.unit
@pytest.mark.tutorial
class TestModelProgress:
    def test_progress_tracks_index(self, model, make_sequence):
        model.start_sequence(make_sequence("p", count=4))

        model.next_step()
        assert model.progress == 0.25

        model.next_step()
        assert model.progress == 0.5

    def test_progress_zero_for_empty_sequence(self, model, make_sequence):
        model.start_sequence(make_sequence("empty", count=0))

        assert model.progress == 0.0


@pytest.mark.unit
@pytest.mark.tutorial
class TestModelPersistence:
    def test_mark_and_query(self, model):
        model.mark_sequence_completed("a")

        assert model.is_sequence_completed("a")
        assert model.get_completed_sequences() == frozenset({"a"})

    def test_load_replaces_set(self, model):
        model.mark_sequence_completed("old")

        model.load_completion_data(["x", "y", "x"])

        assert model.get_completed_sequences() == frozenset({"x", "y"})

    def test_load_none_clears(self, model):
        model.mark_sequence_completed("old")

        model.load_completion_data(None)

        assert model.get_completed_sequences() == frozenset()

    def test_completed_sequences_snapshot_is_immutable(self, model):
        snapshot = model.get_completed_sequences()
        model.mark_sequence_completed("later")

        assert "later" not in snapshot
