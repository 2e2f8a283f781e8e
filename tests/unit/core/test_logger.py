"""
Unit tests for the logging subsystem.

Tests LogContext propagation (including nesting and task inheritance),
the ContextFilter enrichment and the JSON formatter output.
"""

import asyncio
import json
import logging
import queue
import sys

import pytest

from waypoint.core.logging.logger import (
    ContextFilter,
    JSONFormatter,
    LogContext,
    WaypointQueueHandler,
    WaypointQueueListener,
    clear_log_context,
    get_log_context,
    get_logging_health,
    set_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    clear_log_context()
    yield
    clear_log_context()


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="waypoint.modules.tutorial.controller",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=None,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
@pytest.mark.core
class TestLogContext:
    def test_binds_and_restores(self):
        with LogContext(sequence_id="onboarding", run_id="run-1", component="tutorial"):
            context = get_log_context()
            assert context["sequence_id"] == "onboarding"
            assert context["run_id"] == "run-1"
            assert context["correlation_id"] == "run-1"

        assert get_log_context() == {}

    def test_generates_correlation_id(self):
        with LogContext(sequence_id="s") as ctx:
            assert len(ctx.context["correlation_id"]) == 8

    def test_nested_block_inherits_outer_fields(self):
        with LogContext(sequence_id="onboarding", run_id="run-1", component="tutorial"):
            with LogContext(step_id="welcome"):
                inner = get_log_context()
            outer = get_log_context()

        assert inner["sequence_id"] == "onboarding"
        assert inner["step_id"] == "welcome"
        assert inner["component"] == "tutorial"
        assert inner["correlation_id"] == "run-1"
        assert "step_id" not in outer

    def test_set_log_context_merges(self):
        set_log_context(sequence_id="a")
        set_log_context(step_id="b", custom="x")

        assert get_log_context() == {"sequence_id": "a", "step_id": "b", "custom": "x"}

    @pytest.mark.asyncio
    async def test_tasks_inherit_context(self):
        async def read_context():
            return get_log_context().get("sequence_id")

        async with LogContext(sequence_id="onboarding"):
            task = asyncio.create_task(read_context())

        assert await task == "onboarding"


@pytest.mark.unit
@pytest.mark.core
class TestContextFilter:
    def test_enriches_from_context(self):
        record = _record()

        with LogContext(sequence_id="onboarding", step_id="welcome", run_id="r1",
                        component="tutorial"):
            ContextFilter().filter(record)

        assert record.sequence_id == "onboarding"
        assert record.step_id == "welcome"
        assert record.correlation_id == "r1"
        assert record.component == "tutorial"

    def test_defaults_outside_context(self):
        record = _record()

        ContextFilter().filter(record)

        assert record.sequence_id == "N/A"
        assert record.correlation_id == "N/A"
        assert record.component == "waypoint"

    def test_explicit_extra_wins(self):
        record = _record(step_id="explicit")

        with LogContext(step_id="context"):
            ContextFilter().filter(record)

        assert record.step_id == "explicit"


@pytest.mark.unit
@pytest.mark.core
class TestJSONFormatter:
    def test_includes_context_and_extra(self):
        record = _record("Tutorial started", event_name="tutorial.started")
        with LogContext(sequence_id="onboarding", run_id="r1"):
            ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Tutorial started"
        assert data["level"] == "INFO"
        assert data["sequence_id"] == "onboarding"
        assert data["correlation_id"] == "r1"
        assert "step_id" not in data
        assert data["extra"]["event_name"] == "tutorial.started"

    def test_includes_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "waypoint", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in data["exception"]


@pytest.mark.unit
@pytest.mark.core
class TestLoggingHealth:
    def test_initialized_on_import(self):
        health = get_logging_health()

        assert health.initialized is True
        assert health.queue_max_size > 0


@pytest.mark.unit
@pytest.mark.core
class TestQueueDegradation:
    def test_full_queue_drops_record_with_broken_stderr(self, mocker):
        broken = mocker.Mock()
        broken.write.side_effect = ValueError("I/O operation on closed file")
        mocker.patch.object(sys, "stderr", broken)
        handler = WaypointQueueHandler(queue.Queue(maxsize=1))
        before = get_logging_health().records_dropped

        handler.enqueue(_record("first"))
        handler.enqueue(_record("second"))

        assert get_logging_health().records_dropped == before + 1
        broken.write.assert_called_once()

    def test_listener_error_with_broken_stderr(self, mocker):
        broken = mocker.Mock()
        broken.write.side_effect = ValueError("I/O operation on closed file")
        mocker.patch.object(sys, "stderr", broken)
        listener = WaypointQueueListener(queue.Queue())
        before = get_logging_health().listener_errors

        listener.handleError(_record())

        assert get_logging_health().listener_errors == before + 1
