"""Tests for structured logging."""

import json
import logging

from smartmeet.utils.logging_utils import JSONFormatter, StructuredLogger


class TestStructuredLogger:
    """Tests for StructuredLogger output."""

    def test_emits_json_with_extra_fields(self, caplog):
        logger = StructuredLogger("smartmeet.test")
        with caplog.at_level(logging.INFO, logger="smartmeet.test"):
            logger.info("Session created", session_id="s1", platform="zoom")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["message"] == "Session created"
        assert payload["level"] == "INFO"
        assert payload["session_id"] == "s1"
        assert payload["platform"] == "zoom"

    def test_non_serializable_fields_are_stringified(self, caplog):
        logger = StructuredLogger("smartmeet.test")
        with caplog.at_level(logging.ERROR, logger="smartmeet.test"):
            logger.error("Store operation failed", error=ValueError("boom"))

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["error"] == "boom"


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_passes_json_messages_through(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, '{"a": 1}', None, None)
        assert JSONFormatter().format(record) == '{"a": 1}'

    def test_wraps_plain_messages(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 7, "plain %s", ("text",), None)
        payload = json.loads(JSONFormatter().format(record))
        assert payload["message"] == "plain text"
        assert payload["level"] == "WARNING"
        assert payload["line"] == 7


class TestLoggerLevel:
    """Tests for how StructuredLogger picks its level."""

    def test_defers_to_host_level_by_default(self, caplog):
        logger = StructuredLogger("smartmeet.quiet")
        assert logger.logger.level == logging.NOTSET

        with caplog.at_level(logging.INFO):
            logger.debug("Session created", session_id="s1")

        assert not [r for r in caplog.records if r.name == "smartmeet.quiet"]

    def test_explicit_level_is_applied(self):
        logger = StructuredLogger("smartmeet.verbose", level="DEBUG")
        assert logger.logger.level == logging.DEBUG
