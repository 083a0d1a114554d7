"""Unit tests for logging functionality."""

import json
import logging
from pathlib import Path

import pytest

from dnshook import _logging
from dnshook._logging import (
    JsonFormatter,
    Timer,
    configure_logging,
    get_domain_extra,
    get_logger,
    reset_domain,
    set_domain,
)


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_logger_with_dnshook_namespace(self) -> None:
        """Verify logger is under dnshook namespace."""
        logger = get_logger("dnshook.lifecycle")
        assert logger.name == "dnshook.lifecycle"

    def test_logger_hierarchy(self) -> None:
        """Verify logger hierarchy is correct."""
        parent = logging.getLogger("dnshook")
        child = get_logger("dnshook.lifecycle")
        assert child.parent is parent


class TestTimer:
    """Tests for the Timer context manager."""

    def test_measures_elapsed_time(self) -> None:
        """Verify Timer measures elapsed time in milliseconds."""
        import time

        with Timer() as t:
            time.sleep(0.01)  # Sleep 10ms

        assert t.elapsed_ms >= 9
        assert t.elapsed_ms < 1000

    def test_elapsed_starts_at_zero(self) -> None:
        """Verify elapsed_ms is 0 before context exit."""
        timer = Timer()
        assert timer.elapsed_ms == 0


class TestNullHandler:
    """Tests for NullHandler setup (library best practice)."""

    def test_root_logger_has_null_handler(self) -> None:
        """Verify NullHandler is attached to root logger."""
        root = logging.getLogger("dnshook")
        handler_types = [type(h).__name__ for h in root.handlers]
        assert "NullHandler" in handler_types

    def test_library_silent_by_default(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Verify library is silent without consumer configuration."""
        logger = get_logger("dnshook.test")
        logger.info("This should not appear")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""


class TestLogCapture:
    """Tests for the log_capture fixture."""

    def test_captures_messages_by_level(self, log_capture) -> None:
        """Verify messages are captured at every level."""
        logger = get_logger("dnshook.test")
        logger.debug("Debug message")
        logger.warning("Warning message")

        assert "Debug message" in log_capture.get_messages(logging.DEBUG)
        assert "Warning message" in log_capture.get_messages(logging.WARNING)

    def test_filter_by_logger_name(self, log_capture) -> None:
        """Verify filtering by logger name works."""
        get_logger("dnshook.lifecycle").info("Lifecycle message")
        get_logger("dnshook.providers.powerdns").info("Provider message")

        lifecycle_messages = log_capture.get_messages(name="dnshook.lifecycle")
        assert "Lifecycle message" in lifecycle_messages
        assert "Provider message" not in lifecycle_messages

        provider_messages = log_capture.get_messages(name="dnshook.providers")
        assert "Provider message" in provider_messages
        assert "Lifecycle message" not in provider_messages

    def test_extra_fields_captured(self, log_capture) -> None:
        """Verify extra fields are captured in log records."""
        logger = get_logger("dnshook.test")
        logger.info("Test message", extra={"record": "_acme-challenge.example.com", "try": 3})

        records = log_capture.get_records(logging.INFO)
        assert len(records) == 1
        assert records[0].record == "_acme-challenge.example.com"
        assert getattr(records[0], "try") == 3

    def test_clear_removes_records(self, log_capture) -> None:
        """Verify clear() removes all captured records."""
        logger = get_logger("dnshook.test")
        logger.info("Message 1")
        logger.info("Message 2")

        assert len(log_capture.records) == 2
        log_capture.clear()
        assert len(log_capture.records) == 0


class TestDomainContext:
    """Tests for domain context variable functions."""

    def test_get_domain_extra_returns_empty_when_no_context(self) -> None:
        """Verify get_domain_extra returns empty dict when no context is set."""
        assert get_domain_extra() == {}

    def test_set_domain(self) -> None:
        """Verify the domain is returned under 'domain'."""
        token = set_domain("example.com")
        try:
            assert get_domain_extra() == {"domain": "example.com"}
        finally:
            reset_domain(token)

    def test_reset_domain_restores_previous_context(self) -> None:
        """Verify reset_domain properly restores previous context."""
        outer_token = set_domain("outer.com")
        try:
            inner_token = set_domain("inner.com")
            assert get_domain_extra() == {"domain": "inner.com"}

            reset_domain(inner_token)
            assert get_domain_extra() == {"domain": "outer.com"}
        finally:
            reset_domain(outer_token)

        assert get_domain_extra() == {}

    def test_domain_context_in_log_extra(self, log_capture) -> None:
        """Verify domain context merges with other extra fields."""
        logger = get_logger("dnshook.test")
        token = set_domain("merge.example.com")
        try:
            logger.info("Test message", extra={"zone_id": "123", **get_domain_extra()})
        finally:
            reset_domain(token)

        records = log_capture.get_records(logging.INFO)
        assert records[0].domain == "merge.example.com"
        assert records[0].zone_id == "123"


class TestJsonFormatter:
    """Tests for JSON log output."""

    def make_record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            "dnshook.lifecycle", logging.INFO, __file__, 1, "Found zone %s", ("x",), None
        )
        record.__dict__.update(extra)
        return record

    def test_formats_one_json_object(self) -> None:
        """Standard fields are rendered and the message interpolated."""
        data = json.loads(JsonFormatter().format(self.make_record()))

        assert data["level"] == "info"
        assert data["logger"] == "dnshook.lifecycle"
        assert data["msg"] == "Found zone x"
        assert "ts" in data
        assert "args" not in data

    def test_includes_extra_fields(self) -> None:
        """Fields passed through extra= are included."""
        data = json.loads(JsonFormatter().format(self.make_record(zone_id="123", values=["a"])))

        assert data["zone_id"] == "123"
        assert data["values"] == ["a"]

    def test_unserializable_extra_rendered_as_string(self) -> None:
        """Values json cannot encode fall back to str()."""
        data = json.loads(JsonFormatter().format(self.make_record(path=Path("/etc/dnshook.env"))))

        assert data["path"] == "/etc/dnshook.env"
        assert "message" not in data


class TestConfigureLogging:
    """Tests for configure_logging()."""

    @pytest.fixture(autouse=True)
    def restore(self):
        root = logging.getLogger("dnshook")
        level = root.level
        yield
        if _logging._cli_handler is not None:
            root.removeHandler(_logging._cli_handler)
            _logging._cli_handler = None
        root.setLevel(level)

    def test_writes_to_stderr(self, capsys) -> None:
        """Configured logging goes to stderr only."""
        configure_logging("DEBUG", "text")
        get_logger("dnshook.test").debug("hello")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err

    def test_reconfigure_replaces_handler(self) -> None:
        """Calling twice leaves a single installed handler."""
        first = configure_logging()
        second = configure_logging("WARNING")

        root = logging.getLogger("dnshook")
        assert first not in root.handlers
        assert second in root.handlers
        assert root.level == logging.WARNING
