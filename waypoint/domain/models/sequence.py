"""
Tutorial sequence domain model.

An ordered, immutable collection of tutorial steps with an identifier, an
optional display name, a priority (higher is offered first) and a flag
controlling whether the player may skip the whole sequence.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

from waypoint.domain.models.base import DomainValidationError, Entity
from waypoint.domain.models.step import TutorialStep


class SequenceDefinitionError(DomainValidationError):
    """Raised when a sequence is authored with invalid content."""


class TutorialSequence(Entity):
    """
    Ordered collection of steps forming one tutorial.

    Parameters
    ----------
    sequence_id : str
        Unique identifier used for registration and completion tracking
    name : Optional[str]
        Display name
    priority : int
        Ordering hint for hosts choosing which tutorial to offer
    can_skip_all : bool
        Whether `skip_all` is honoured while this sequence runs
    steps : Iterable[TutorialStep]
        Steps in execution order; identifiers must be unique

    Raises
    ------
    SequenceDefinitionError
        If the identifier is empty or step identifiers repeat

    Examples
    --------
    >>> onboarding = TutorialSequence(
    ...     "onboarding",
    ...     name="First steps",
    ...     steps=[
    ...         MessageStep("welcome", "Welcome", "Tap to continue"),
    ...         HighlightStep("play", target_id="playButton"),
    ...     ],
    ... )
    >>> onboarding.step_count
    2
    """

    def __init__(
        self,
        sequence_id: str,
        name: Optional[str] = None,
        priority: int = 0,
        can_skip_all: bool = True,
        steps: Iterable[TutorialStep] = (),
    ) -> None:
        try:
            super().__init__(sequence_id)
        except DomainValidationError as exc:
            raise SequenceDefinitionError(str(exc), field="sequence_id") from exc

        self._name = name
        self._priority = priority
        self._can_skip_all = can_skip_all
        self._steps: Tuple[TutorialStep, ...] = tuple(steps)
        self._validate_steps()

    def _validate_steps(self) -> None:
        seen: set[str] = set()
        for step in self._steps:
            if not isinstance(step, TutorialStep):
                raise SequenceDefinitionError(
                    f"Sequence '{self.id}' contains a non-step item: {step!r}",
                    field="steps",
                )
            if step.id in seen:
                raise SequenceDefinitionError(
                    f"Sequence '{self.id}' has duplicate step id '{step.id}'",
                    field="steps",
                )
            seen.add(step.id)

    @property
    def sequence_id(self) -> str:
        return self.id

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def priority(self) -> int:
        return self._priority

    @property
    def can_skip_all(self) -> bool:
        return self._can_skip_all

    @property
    def steps(self) -> Tuple[TutorialStep, ...]:
        return self._steps

    @property
    def step_count(self) -> int:
        return len(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[TutorialStep]:
        return iter(self._steps)

    def get_step(self, index: int) -> Optional[TutorialStep]:
        """Return the step at `index`, or None when out of range (negatives included)."""
        if index < 0 or index >= len(self._steps):
            return None
        return self._steps[index]

    def get_step_by_id(self, step_id: str) -> Optional[TutorialStep]:
        for step in self._steps:
            if step.id == step_id:
                return step
        return None

    def reset_steps(self) -> None:
        """Recycle every step for a fresh run."""
        for step in self._steps:
            step.reset()

    def with_step(self, step: TutorialStep) -> TutorialSequence:
        """Return a new sequence with `step` appended."""
        return TutorialSequence(
            self.id,
            name=self._name,
            priority=self._priority,
            can_skip_all=self._can_skip_all,
            steps=(*self._steps, step),
        )

    def __repr__(self) -> str:
        return (
            f"TutorialSequence(sequence_id={self.id!r}, steps={len(self._steps)}, "
            f"priority={self._priority})"
        )
