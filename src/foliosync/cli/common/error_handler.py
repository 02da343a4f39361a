"""
CLI Error Handling Utilities

Consistent error output and exit codes across commands.
"""

from __future__ import annotations

import functools
import logging
import sys
from typing import Any, Callable, TypeVar

import orjson
import typer
from pydantic import ValidationError

from foliosync.cli.common.context import LogLevel, get_cli_context
from foliosync.shared.constants import CLIDefaults
from foliosync.shared.errors import (
    ApplicationError,
    CliError,
    DomainError,
    ErrorCode,
    FolioSyncError,
    InfrastructureError,
    create_cli_error,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def format_json_output(
    command: str,
    *,
    success: bool,
    errors: list[str] | None = None,
    data: Any = None,
) -> bytes:
    """Format command output as JSON.

    Args:
        command: The command that was executed
        success: Whether the operation was successful
        errors: List of error messages
        data: Additional data to include

    Returns:
        JSON-formatted bytes for output
    """
    output: dict[str, Any] = {
        "success": success,
        "command": command,
    }

    if errors:
        output["errors"] = errors

    if data is not None:
        output["data"] = data

    return orjson.dumps(output, option=orjson.OPT_INDENT_2)


def handle_cli_error(
    error: Exception,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Log and print an error, returning the command's exit code."""
    cli_error = _map_error_to_cli_error(error, command)
    _log_error(error, command, cli_error)

    if json_output:
        data: dict[str, Any] = {
            "error_code": cli_error.code.value,
            "error_type": type(error).__name__,
            "exit_code": cli_error.exit_code,
        }
        if isinstance(error, FolioSyncError):
            data["context"] = error.context.safe_dict()
        sys.stdout.buffer.write(
            format_json_output(command, success=False, errors=[cli_error.message], data=data),
        )
        sys.stdout.buffer.write(b"\n")
        sys.stdout.buffer.flush()
    else:
        sys.stderr.write(f"Error: {cli_error.message}\n")
        if get_cli_context().log_level is LogLevel.DEBUG:
            sys.stderr.write(f"Details: {_describe(error)}\n")

    return cli_error.exit_code


def _map_error_to_cli_error(error: Exception, command: str) -> CliError:
    """Map specific exception types to CLI errors."""
    if isinstance(error, CliError):
        return error

    if isinstance(error, DomainError):
        return create_cli_error(error.message, command=command, code=error.code, original_error=error)

    if isinstance(error, InfrastructureError):
        return create_cli_error(
            f"Infrastructure error: {error.message}",
            command=command,
            code=error.code,
            original_error=error,
        )

    if isinstance(error, ApplicationError):
        return create_cli_error(
            f"Application error: {error.message}",
            command=command,
            code=error.code,
            original_error=error,
        )

    if isinstance(error, ValidationError):
        return create_cli_error(
            f"Invalid record: {error.error_count()} validation error(s): {error.errors()[0]['msg']}",
            command=command,
            code=ErrorCode.VALIDATION_ERROR,
            original_error=error,
            exit_code=CLIDefaults.EXIT_USAGE,
        )

    return create_cli_error(f"Unexpected error: {error}", command=command, original_error=error)


def _describe(error: Exception) -> str:
    cause = error.original_error if isinstance(error, FolioSyncError) else error.__cause__
    details = type(error).__name__
    if cause is not None:
        details += f" caused by {type(cause).__name__}: {cause}"
    return details


def _log_error(error: Exception, command: str, cli_error: CliError) -> None:
    context = {"command": command, "error_type": type(error).__name__, "error_code": cli_error.code.value}
    if isinstance(error, (FolioSyncError, ValidationError)):
        logger.warning("CLI error in %s: %s", command, cli_error.message, extra={"context": context})
    else:
        logger.exception("CLI error in %s: %s", command, cli_error.message, extra={"context": context})


def handle_cli_errors(command: str) -> Callable[[F], F]:
    """Turn exceptions raised by a command handler into a ``typer.Exit``.

    The handler's ``json_output`` keyword selects the error format.

    Example:
        >>> @handle_cli_errors("list")
        ... def list_command(resource: str, *, json_output: bool = False) -> None:
        ...     ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except Exception as e:  # noqa: BLE001
                exit_code = handle_cli_error(e, command, json_output=bool(kwargs.get("json_output", False)))
                raise typer.Exit(exit_code) from e

        return wrapper  # type: ignore[return-value]

    return decorator
