"""
Waypoint: cooperative tutorial sequencing for asyncio applications.

Typical wiring::

    model = TutorialModel()
    controller = TutorialController(model, presentation=my_ui)
    controller.register_sequence(onboarding)
    await controller.start("onboarding")
"""

from waypoint.domain.models import (
    HighlightStep,
    MessageStep,
    PointerStep,
    ScreenPosition,
    SequenceDefinitionError,
    StepState,
    TutorialSequence,
    TutorialStep,
)
from waypoint.modules.tutorial import (
    NullPresentation,
    SignalPresentation,
    TutorialController,
    TutorialModel,
    TutorialPresentation,
    TutorialState,
)

__version__ = "0.1.0"

__all__ = [
    "HighlightStep",
    "MessageStep",
    "PointerStep",
    "ScreenPosition",
    "SequenceDefinitionError",
    "StepState",
    "TutorialSequence",
    "TutorialStep",
    "NullPresentation",
    "SignalPresentation",
    "TutorialController",
    "TutorialModel",
    "TutorialPresentation",
    "TutorialState",
]
