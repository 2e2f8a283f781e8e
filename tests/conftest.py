"""
Pytest Configuration and Fixtures for Waypoint Tests
=====================================================

Purpose
-------
Centralized fixtures for the Waypoint test suite: event bus, model,
controller wiring, a recording presentation and reusable step/sequence
factories.

Architecture Notes
------------------
- Unit tests only; no external infrastructure
- Async tests use pytest-asyncio in strict mode (`@pytest.mark.asyncio`)
- Player input is simulated through SignalPresentation
- `wait_until()` yields to the loop until a condition holds, so tests wait on
  observable state rather than fixed sleeps
"""

from __future__ import annotations

import asyncio
import os
from typing import Callable

os.environ.setdefault("WAYPOINT_ENV", "testing")

import pytest

from waypoint.core.config.manager import ConfigManager
from waypoint.core.event.bus import EventBus
from waypoint.domain.models.sequence import TutorialSequence
from waypoint.domain.models.step import HighlightStep, MessageStep
from waypoint.modules.tutorial.controller import TutorialController
from waypoint.modules.tutorial.model import TutorialModel
from waypoint.modules.tutorial.presentation import SignalPresentation


# ============================================================================
# HELPERS
# ============================================================================


async def wait_until(condition: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until `condition()` holds, failing after `timeout` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0)


def event_names(recorded: list[tuple[str, dict]]) -> list[str]:
    return [name for name, _ in recorded]


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh EventBus per test."""
    return EventBus()


@pytest.fixture
def config_manager(tmp_path) -> ConfigManager:
    """ConfigManager with built-in defaults and a fast pause poll."""
    manager = ConfigManager(config_dir=tmp_path)
    manager.set("tutorial.pause_poll_interval_seconds", 0.001)
    return manager


@pytest.fixture
def model(event_bus) -> TutorialModel:
    return TutorialModel(event_bus=event_bus)


@pytest.fixture
def presentation() -> SignalPresentation:
    return SignalPresentation()


@pytest.fixture
def controller(model, presentation, config_manager) -> TutorialController:
    return TutorialController(model, presentation, config_manager=config_manager)


@pytest.fixture
def recorded(event_bus) -> list[tuple[str, dict]]:
    """
    Every tutorial.* event emitted on the bus, as (event_name, payload).

    Scope: function
    """
    captured: list[tuple[str, dict]] = []
    for name in (
        "tutorial.state_changed",
        "tutorial.step_changed",
        "tutorial.sequence_completed",
        "tutorial.started",
        "tutorial.completed",
        "tutorial.cancelled",
        "tutorial.skipped",
    ):
        event_bus.subscribe(
            name,
            lambda payload, name=name: captured.append((name, payload)),
            identifier=f"recorder:{name}",
        )
    return captured


# ============================================================================
# DOMAIN FACTORIES
# ============================================================================


class RecordingStep(MessageStep):
    """MessageStep that counts cleanup calls."""

    def __init__(self, step_id: str, **options) -> None:
        super().__init__(step_id, f"Title {step_id}", f"Message {step_id}", **options)
        self.cleanup_calls = 0

    def on_cleanup(self) -> None:
        self.cleanup_calls += 1


@pytest.fixture
def make_sequence() -> Callable[..., TutorialSequence]:
    """Factory building a sequence of N RecordingSteps."""

    def _make(sequence_id: str = "seq", count: int = 3, **options) -> TutorialSequence:
        steps = [RecordingStep(f"{sequence_id}-step-{i}") for i in range(count)]
        return TutorialSequence(sequence_id, steps=steps, **options)

    return _make


@pytest.fixture
def onboarding() -> TutorialSequence:
    """Two-step onboarding: a welcome message, then a highlighted play button."""
    return TutorialSequence(
        "onboarding",
        name="First steps",
        steps=[
            MessageStep("welcome", "Welcome", "Tap to continue"),
            HighlightStep("play", target_id="playButton", message="Tap Play"),
        ],
    )
