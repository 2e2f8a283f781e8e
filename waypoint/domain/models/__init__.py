"""Domain models for Waypoint tutorials."""

from waypoint.domain.models.base import (
    DomainValidationError,
    Entity,
    ValueObject,
    validate_non_negative,
    validate_not_empty,
)
from waypoint.domain.models.sequence import SequenceDefinitionError, TutorialSequence
from waypoint.domain.models.step import (
    HighlightStep,
    MessageStep,
    PointerStep,
    ScreenPosition,
    StepState,
    TutorialStep,
)

__all__ = [
    "DomainValidationError",
    "Entity",
    "ValueObject",
    "validate_non_negative",
    "validate_not_empty",
    "SequenceDefinitionError",
    "TutorialSequence",
    "HighlightStep",
    "MessageStep",
    "PointerStep",
    "ScreenPosition",
    "StepState",
    "TutorialStep",
]
