"""Tests for stepglue.core.logging module."""

import pytest
import structlog
from structlog.testing import capture_logs

from stepglue.core.logging import (
    LogContext,
    StepTimer,
    configure_from_settings,
    configure_logging,
    log_step,
)
from stepglue.core.settings import GlueSettings


@pytest.fixture(autouse=True)
def reset_structlog():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_console_configuration(self):
        configure_logging(level="DEBUG", json_format=False)
        assert structlog.is_configured()

    def test_json_configuration(self):
        configure_logging(level="INFO", json_format=True, service="runner")
        assert structlog.is_configured()

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            configure_logging(level="chatty")

    def test_from_settings(self):
        configure_from_settings(GlueSettings(log_level="warning", log_format="json"))
        assert structlog.is_configured()


class TestLogStep:
    def test_logs_end_with_duration_and_metrics(self):
        with capture_logs() as logs:
            with log_step("glue.load", glue_source="units") as timer:
                timer.add_metric("registered", 3)
        end = [e for e in logs if e["event"] == "glue.load.end"]
        assert len(end) == 1
        assert end[0]["registered"] == 3
        assert end[0]["glue_source"] == "units"
        assert "duration_ms" in end[0]

    def test_logs_failure_and_reraises(self):
        with capture_logs() as logs:
            with pytest.raises(RuntimeError):
                with log_step("glue.load"):
                    raise RuntimeError("boom")
        failed = [e for e in logs if e["event"] == "glue.load.failed"]
        assert failed[0]["error_type"] == "RuntimeError"
        assert failed[0]["error_message"] == "boom"
        assert failed[0]["log_level"] == "error"


class TestStepTimer:
    def test_stop_freezes_duration(self):
        timer = StepTimer(event="x").stop()
        finished = timer.finished
        assert timer.stop().finished == finished
        assert timer.fields()["duration_ms"] == round(timer.duration_ms, 2)

    def test_metrics_are_reported(self):
        timer = StepTimer(event="x").add_metric("advised", 2)
        assert timer.fields()["advised"] == 2


class TestLogContext:
    def test_binds_and_unbinds(self):
        with LogContext(glue_batch="abc123"):
            assert structlog.contextvars.get_contextvars()["glue_batch"] == "abc123"
        assert "glue_batch" not in structlog.contextvars.get_contextvars()

    def test_restores_outer_context(self):
        structlog.contextvars.bind_contextvars(run_id="r1", glue_batch="outer")
        with LogContext(glue_batch="inner"):
            assert structlog.contextvars.get_contextvars()["glue_batch"] == "inner"
        assert structlog.contextvars.get_contextvars() == {"run_id": "r1", "glue_batch": "outer"}
