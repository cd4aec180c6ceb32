"""Tests for unisport.utils.logging_setup module."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from unisport.data.models import BookingStatus
from unisport.utils.logging_setup import (
    JSONFormatter,
    TextFormatter,
    extra_fields,
    setup_logging,
)


def _record(msg: str = "hello", level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="unisport.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=None,
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test the JSON log formatter."""

    def test_format_produces_valid_json(self) -> None:
        parsed = json.loads(JSONFormatter().format(_record()))
        assert isinstance(parsed, dict)

    def test_required_fields_present(self) -> None:
        parsed = json.loads(
            JSONFormatter().format(_record("warning message", logging.WARNING))
        )
        assert "timestamp" in parsed
        assert parsed["level"] == "WARNING"
        assert parsed["message"] == "warning message"
        assert "module" in parsed

    def test_extra_fields_included(self) -> None:
        record = _record("with extras")
        record.course_count = 3  # type: ignore[attr-defined]
        record.cache_path = "/tmp/c.json"  # type: ignore[attr-defined]

        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["course_count"] == 3
        assert parsed["cache_path"] == "/tmp/c.json"

    def test_logger_name_included(self) -> None:
        assert json.loads(JSONFormatter().format(_record()))["logger"] == "unisport.test"

    def test_enums_and_sets_serialized(self) -> None:
        record = _record()
        record.status = BookingStatus.WAITLIST  # type: ignore[attr-defined]
        record.days = {"Mi", "Mo"}  # type: ignore[attr-defined]

        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["status"] == "waitlist"
        assert parsed["days"] == ["Mi", "Mo"]

    def test_private_attributes_skipped(self) -> None:
        record = _record()
        record._internal = "x"  # type: ignore[attr-defined]
        assert "_internal" not in json.loads(JSONFormatter().format(record))

    def test_non_ascii_kept_verbatim(self) -> None:
        output = JSONFormatter().format(_record("Schwimmhalle Dahlem-Dorf ÄÖÜ"))
        assert "ÄÖÜ" in output

    def test_exception_info_included(self) -> None:
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(
            JSONFormatter().format(_record("error occurred", logging.ERROR, exc_info))
        )
        assert "exception" in parsed
        assert "ValueError" in parsed["exception"]


class TestTextFormatter:
    """Test the human-readable console formatter."""

    def test_message_and_extras(self) -> None:
        record = _record("cache refreshed", logging.WARNING)
        record.courses = 12  # type: ignore[attr-defined]

        line = TextFormatter().format(record)
        assert "WARNING" in line
        assert "cache refreshed" in line
        assert line.endswith("courses=12")

    def test_no_extras(self) -> None:
        assert TextFormatter().format(_record("plain")).endswith("plain")

    def test_extra_fields_only_caller_attributes(self) -> None:
        record = _record()
        record.url = "https://x"  # type: ignore[attr-defined]
        assert extra_fields(record) == {"url": "https://x"}


class TestSetupLogging:
    """Test the logging setup function."""

    def test_logger_name(self) -> None:
        assert setup_logging().name == "unisport"

    def test_default_level_is_info(self) -> None:
        assert setup_logging().level == logging.INFO

    def test_case_insensitive_level(self) -> None:
        assert setup_logging(level="debug").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        assert setup_logging(level="chatty").level == logging.INFO

    def test_console_handler_uses_json_formatter(self) -> None:
        logger = setup_logging()
        stream_handlers = [
            h for h in logger.handlers if isinstance(h, logging.StreamHandler)
        ]
        assert stream_handlers
        assert all(isinstance(h.formatter, JSONFormatter) for h in stream_handlers)

    def test_file_handler_writes_json(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        logger = setup_logging(log_file=str(log_file))

        logger.info("cache refreshed", extra={"course_count": 12})

        for h in logger.handlers:
            h.flush()

        parsed = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert parsed["message"] == "cache refreshed"
        assert parsed["course_count"] == 12

        for h in logger.handlers:
            h.close()

    def test_no_duplicate_handlers_on_repeated_calls(self) -> None:
        logger1 = setup_logging()
        count1 = len(logger1.handlers)
        logger2 = setup_logging()

        assert len(logger2.handlers) == count1
        assert logger1 is logger2

    def test_no_file_handler_when_none(self) -> None:
        logger = setup_logging(log_file=None)
        assert not [h for h in logger.handlers if isinstance(h, logging.FileHandler)]

    def test_text_console_format(self) -> None:
        logger = setup_logging(fmt="text")
        stream_handlers = [
            h for h in logger.handlers if type(h) is logging.StreamHandler
        ]
        assert len(stream_handlers) == 1
        assert isinstance(stream_handlers[0].formatter, TextFormatter)

    def test_file_handler_creates_parent_directory(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "unisport.log"
        logger = setup_logging(log_file=log_file, fmt="text")
        logger.warning("hello")

        for h in logger.handlers:
            h.flush()
        # the file stays JSON whatever the console format
        assert json.loads(log_file.read_text(encoding="utf-8"))["message"] == "hello"

        for h in logger.handlers:
            h.close()
