"""Tests for logging setup."""

import json

import pytest

from sqlbridge.core.logging import get_logger, setup_logging


@pytest.mark.unit
class TestSetupLogging:
    def test_setup_without_errors(self):
        """Logger initializes without errors."""
        setup_logging()

    def test_setup_verbose(self):
        """Logger initializes with verbose flag."""
        setup_logging(verbose=True)

    def test_setup_json(self):
        setup_logging(json_logs=True)


@pytest.mark.unit
class TestGetLogger:
    def test_get_logger_without_name(self):
        """Get logger without binding a name."""
        setup_logging()
        log = get_logger()
        assert log is not None

    def test_get_logger_with_name(self):
        """Get logger with a bound name."""
        setup_logging()
        log = get_logger("test_module")
        assert log is not None


@pytest.mark.unit
class TestLogOutput:
    def test_log_to_stderr(self, capsys):
        """Log output goes to stderr, not stdout."""
        setup_logging(verbose=True)
        log = get_logger()
        log.info("test message")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "test message" in captured.err

    def test_default_level_hides_info(self, capsys):
        """Without --verbose only warnings and errors are printed."""
        setup_logging()
        log = get_logger()
        log.info("quiet message")
        log.warning("loud message")

        captured = capsys.readouterr()
        assert "quiet message" not in captured.err
        assert "loud message" in captured.err

    def test_json_lines(self, capsys):
        """JSON mode emits one parseable object per event."""
        setup_logging(verbose=True, json_logs=True)
        get_logger("sqlbridge.test").info("structured", rows=3)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "structured"
        assert event["rows"] == 3
        assert event["logger"] == "sqlbridge.test"
        assert event["level"] == "info"
