"""Tests for CLI error mapping and output."""

import json

import pytest
import typer
from pydantic import ValidationError

from foliosync.cli.common.context import CliContext, LogLevel, set_cli_context
from foliosync.cli.common.error_handler import (
    format_json_output,
    handle_cli_error,
    handle_cli_errors,
)
from foliosync.shared.errors import (
    ErrorCode,
    create_cli_error,
    create_config_error,
    create_fetch_failed_error,
    create_record_not_found_error,
)
from foliosync.shared.models import Skill


def _validation_error() -> ValidationError:
    try:
        Skill.model_validate({"id": "1"})
    except ValidationError as e:
        return e
    raise AssertionError("expected a validation error")


class TestFormatJsonOutput:
    """Test the JSON envelope."""

    def test_success(self):
        payload = json.loads(format_json_output("list", success=True, data={"count": 1}))
        assert payload == {"success": True, "command": "list", "data": {"count": 1}}

    def test_errors(self):
        payload = json.loads(format_json_output("list", success=False, errors=["boom"]))
        assert payload == {"success": False, "command": "list", "errors": ["boom"]}


class TestHandleCliError:
    """Test mapping exceptions to messages and exit codes."""

    @pytest.mark.parametrize(
        ("error", "message", "exit_code"),
        [
            (create_record_not_found_error("skills", "9", "update"), "Record '9' not found in 'skills'", 1),
            (create_fetch_failed_error("skills", "offline"), "Infrastructure error: offline", 1),
            (create_config_error("bad file"), "Application error: bad file", 1),
            (create_cli_error("bad args", exit_code=2), "bad args", 2),
            (RuntimeError("kaboom"), "Unexpected error: kaboom", 1),
        ],
    )
    def test_text_output(self, capsys, error, message, exit_code):
        assert handle_cli_error(error, "update") == exit_code
        assert capsys.readouterr().err == f"Error: {message}\n"

    def test_debug_level_shows_cause(self, capsys):
        set_cli_context(CliContext(log_level=LogLevel.DEBUG))
        error = create_fetch_failed_error("skills", "offline", original_error=ConnectionError("refused"))

        handle_cli_error(error, "list")

        assert capsys.readouterr().err == (
            "Error: Infrastructure error: offline\n"
            "Details: FetchFailedError caused by ConnectionError: refused\n"
        )

    def test_validation_error_is_usage_error(self, capsys):
        assert handle_cli_error(_validation_error(), "create") == 2
        assert "Invalid record" in capsys.readouterr().err

    def test_json_output(self, capsys):
        error = create_record_not_found_error("skills", "9", "delete")

        exit_code = handle_cli_error(error, "delete", json_output=True)

        payload = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert payload["success"] is False
        assert payload["errors"] == ["Record '9' not found in 'skills'"]
        assert payload["data"]["error_code"] == ErrorCode.RECORD_NOT_FOUND.value
        assert payload["data"]["error_type"] == "RecordNotFoundError"
        assert payload["data"]["context"]["resource"] == "skills"


class TestHandleCliErrorsDecorator:
    """Test the command decorator."""

    def test_passes_result_through(self):
        @handle_cli_errors("list")
        def command(value: int) -> int:
            return value * 2

        assert command(4) == 8

    def test_exception_becomes_exit(self, capsys):
        @handle_cli_errors("delete")
        def command(*, json_output: bool = False) -> None:
            raise create_record_not_found_error("skills", "1", "delete")

        with pytest.raises(typer.Exit) as exc_info:
            command(json_output=True)

        assert exc_info.value.exit_code == 1
        assert json.loads(capsys.readouterr().out)["command"] == "delete"

    def test_exit_is_not_wrapped(self):
        @handle_cli_errors("list")
        def command() -> None:
            raise typer.Exit(3)

        with pytest.raises(typer.Exit) as exc_info:
            command()
        assert exc_info.value.exit_code == 3
