"""Tests for the structured logging helpers."""

import json
import logging
from pathlib import Path

from rich.logging import RichHandler

from foliosync.shared.errors import ErrorCode, ErrorContext, FetchFailedError
from foliosync.shared.logging import (
    StructuredFormatter,
    log_api_call,
    log_operation_error,
    log_operation_start,
    log_operation_success,
    setup_structured_logger,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("foliosync.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Test JSON log formatting."""

    def test_basic_fields(self):
        payload = json.loads(StructuredFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "foliosync.test"
        assert payload["message"] == "hello world"
        assert "timestamp" in payload

    def test_extra_fields(self):
        payload = json.loads(StructuredFormatter().format(_record(error_code="FETCH_FAILED", context={"a": 1})))
        assert payload["error_code"] == "FETCH_FAILED"
        assert payload["context"] == {"a": 1}


class TestSetupStructuredLogger:
    """Test logger configuration."""

    def test_rich_console(self):
        logger = setup_structured_logger(level="DEBUG")
        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.propagate is False

    def test_plain_console_and_file(self, temp_dir: Path):
        log_file = temp_dir / "logs" / "foliosync.log"

        logger = setup_structured_logger(level="INFO", log_file=str(log_file), use_rich_console=False)
        logger.info("written")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert isinstance(logger.handlers[0].formatter, StructuredFormatter)
        assert json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])["message"] == "written"

    def test_reconfigure_replaces_handlers(self):
        setup_structured_logger(level="INFO")
        logger = setup_structured_logger(level="WARNING")
        assert len(logger.handlers) == 1


class TestOperationHelpers:
    """Test the operation logging helpers."""

    def test_log_operation_error(self, caplog):
        logger = logging.getLogger("foliosync.test")
        error = FetchFailedError(
            ErrorCode.FETCH_FAILED,
            "GET failed",
            ErrorContext(resource="skills", operation="fetch"),
        )

        with caplog.at_level(logging.WARNING, logger="foliosync"):
            log_operation_error(logger, error, additional_context={"attempt": 2}, level=logging.WARNING)

        (record,) = caplog.records
        assert record.levelno == logging.WARNING
        assert record.error_code == "FETCH_FAILED"
        assert record.operation == "fetch"
        assert record.context == {
            "resource": "skills",
            "operation": "fetch",
            "additional_data": {},
            "attempt": 2,
        }

    def test_success_and_start_at_debug(self, caplog):
        logger = logging.getLogger("foliosync.test")

        with caplog.at_level(logging.DEBUG, logger="foliosync"):
            log_operation_start(logger, "revalidate", {"resource": "skills"})
            log_operation_success(logger, "revalidate", 12.5, result_info={"records": 3})

        start, success = caplog.records
        assert start.getMessage() == "Starting operation 'revalidate'"
        assert success.duration_ms == 12.5
        assert success.result_info == {"records": 3}

    def test_api_call_levels(self, caplog):
        logger = logging.getLogger("foliosync.test")

        with caplog.at_level(logging.DEBUG, logger="foliosync"):
            log_api_call(logger, "/api/admin/skills", status_code=200, duration_ms=5)
            log_api_call(logger, "/api/admin/skills", method="POST", status_code=500)

        ok, failed = caplog.records
        assert ok.levelno == logging.DEBUG
        assert ok.getMessage() == "GET /api/admin/skills succeeded with status 200"
        assert failed.levelno == logging.WARNING
        assert failed.context["status_code"] == 500
