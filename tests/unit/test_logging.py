"""
Unit tests for logging_abstraction module.

Tests the JSON and human-readable formatters and BridgeLogger handler setup.
"""

import json
import logging
import sys

from mqtt_matter_bridge.correlation import correlation_context
from mqtt_matter_bridge.logging_abstraction import BridgeLogger, HumanReadableFormatter, JSONFormatter, get_logger


def _record(msg="Device updated", extra_data=None):
    record = logging.LogRecord(
        name="mqtt_matter_bridge.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter"""

    def test_basic_fields(self):
        """Test the JSON line carries level, logger and message"""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "mqtt_matter_bridge.test"
        assert data["message"] == "Device updated"
        assert data["line"] == 42
        assert "context" not in data

    def test_context_and_correlation_id(self):
        """Test extra context and the active correlation ID are included"""
        with correlation_context(correlation_id="abc123"):
            data = json.loads(JSONFormatter().format(_record(extra_data={"device": "Desk Plug", "level": 128})))

        assert data["context"] == {"device": "Desk Plug", "level": 128}
        assert data["correlation_id"] == "abc123"

    def test_exception_included(self):
        """Test exception tracebacks are serialized"""
        try:
            raise ValueError("bad payload")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad payload" in data["exception"]


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter"""

    def test_short_correlation_id(self):
        """Test the first eight characters of the correlation ID are shown"""
        with correlation_context(correlation_id="0123456789abcdef"):
            line = HumanReadableFormatter().format(_record())

        assert "[01234567]" in line
        assert line.endswith("> Device updated")

    def test_placeholder_without_correlation_id(self):
        """Test a placeholder is shown outside any correlation context"""
        line = HumanReadableFormatter().format(_record())

        assert "[--------]" in line

    def test_context_suffix(self):
        """Test extra context is appended as key=value pairs"""
        line = HumanReadableFormatter().format(_record(extra_data={"device": "Lamp", "topic": "lamp/state"}))

        assert line.endswith("| device=Lamp | topic=lamp/state")


class TestBridgeLogger:
    """Tests for BridgeLogger"""

    def test_handlers_not_duplicated(self):
        """Test repeated get_logger calls share one set of handlers"""
        first = get_logger("mqtt_matter_bridge.tests.dedupe")
        count = len(first.handlers)
        second = get_logger("mqtt_matter_bridge.tests.dedupe")

        assert len(second.handlers) == count
        assert first.logger is second.logger

    def test_extra_wrapped_as_extra_data(self, caplog):
        """Test structured context reaches records as extra_data"""
        logger = get_logger("mqtt_matter_bridge.tests.extra")

        logger.info("Availability changed", extra={"device": "TV", "reachable": False})

        record = caplog.records[-1]
        assert record.getMessage() == "Availability changed"
        assert record.extra_data == {"device": "TV", "reachable": False}

    def test_exception_carries_traceback_and_caller(self, caplog):
        """Test exception() logs at error level with exc_info, context and the calling function"""
        logger = get_logger("mqtt_matter_bridge.tests.exception")

        try:
            raise RuntimeError("graph unavailable")
        except RuntimeError:
            logger.exception("Failed to %s", "update level", extra={"device": "Lamp"})

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "Failed to update level"
        assert record.exc_info is not None
        assert record.exc_info[0] is RuntimeError
        assert record.extra_data == {"device": "Lamp"}
        assert record.funcName == "test_exception_carries_traceback_and_caller"

    def test_json_file_output(self, tmp_path):
        """Test json format writes one JSON object per line to the file"""
        log_file = tmp_path / "logs" / "bridge.json"
        logger = BridgeLogger("mqtt_matter_bridge.tests.json_file", log_format="json", json_file=log_file)

        logger.warning("Publish failed", extra={"topic": "plug/set"})
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(log_file.read_text().splitlines()[-1])
        assert data["level"] == "WARNING"
        assert data["context"] == {"topic": "plug/set"}

    def test_set_level(self):
        """Test set_level applies to the logger and its handlers"""
        logger = get_logger("mqtt_matter_bridge.tests.level")

        logger.set_level(logging.DEBUG)

        assert logger.logger.level == logging.DEBUG
        assert all(handler.level == logging.DEBUG for handler in logger.handlers)
