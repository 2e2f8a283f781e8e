"""
Tutorial Module
===============

Domain: Player onboarding sequences

Components:
- TutorialModel: state machine and completion bookkeeping
- TutorialController: run orchestration, control surface, registry
- TutorialPresentation / NullPresentation / SignalPresentation: UI boundary
"""

from .controller import TutorialController
from .model import TutorialModel, TutorialState
from .presentation import NullPresentation, SignalPresentation, TutorialPresentation

__all__ = [
    "TutorialController",
    "TutorialModel",
    "TutorialState",
    "TutorialPresentation",
    "NullPresentation",
    "SignalPresentation",
]
