"""
Unit tests for TutorialSequence.

Tests construction validation, indexed and id lookup, immutability and
step recycling.
"""

import pytest

from waypoint.domain.models.sequence import SequenceDefinitionError, TutorialSequence
from waypoint.domain.models.step import MessageStep, StepState


@pytest.mark.unit
@pytest.mark.tutorial
class TestSequenceConstruction:
    def test_accessors(self, onboarding):
        assert onboarding.sequence_id == "onboarding"
        assert onboarding.name == "First steps"
        assert onboarding.priority == 0
        assert onboarding.can_skip_all is True
        assert onboarding.step_count == 2
        assert len(onboarding) == 2
        assert [step.id for step in onboarding] == ["welcome", "play"]

    def test_steps_are_immutable_tuple(self, onboarding):
        assert isinstance(onboarding.steps, tuple)

    def test_empty_identifier_rejected(self):
        with pytest.raises(SequenceDefinitionError):
            TutorialSequence("")

    def test_duplicate_step_ids_rejected(self):
        with pytest.raises(SequenceDefinitionError) as exc_info:
            TutorialSequence(
                "dup",
                steps=[MessageStep("a", "T", "M"), MessageStep("a", "T2", "M2")],
            )

        assert "duplicate step id 'a'" in str(exc_info.value)

    def test_empty_sequence_allowed(self):
        sequence = TutorialSequence("empty")

        assert sequence.step_count == 0
        assert sequence.get_step(0) is None


@pytest.mark.unit
@pytest.mark.tutorial
class TestSequenceLookup:
    def test_get_step_in_range(self, onboarding):
        assert onboarding.get_step(1).id == "play"

    @pytest.mark.parametrize("index", [-1, 2, 100])
    def test_get_step_out_of_range_returns_none(self, onboarding, index):
        assert onboarding.get_step(index) is None

    def test_get_step_by_id(self, onboarding):
        assert onboarding.get_step_by_id("welcome").title == "Welcome"
        assert onboarding.get_step_by_id("missing") is None


@pytest.mark.unit
@pytest.mark.tutorial
class TestSequenceBuilding:
    def test_with_step_returns_new_sequence(self, onboarding):
        extra = MessageStep("bye", "Bye", "See you")

        extended = onboarding.with_step(extra)

        assert extended is not onboarding
        assert extended.step_count == 3
        assert onboarding.step_count == 2
        assert extended.get_step(2) is extra

    def test_with_step_rejects_duplicate(self, onboarding):
        with pytest.raises(SequenceDefinitionError):
            onboarding.with_step(MessageStep("welcome", "T", "M"))

    def test_reset_steps(self, onboarding):
        for step in onboarding:
            step.activate()
            step.complete()

        onboarding.reset_steps()

        assert all(step.state is StepState.PENDING for step in onboarding)
