"""Parsing of ``--field key=value`` assignments."""

from __future__ import annotations

from typing import Any

import orjson

from foliosync.shared.constants import CLIDefaults
from foliosync.shared.errors import ErrorCode, create_cli_error


def parse_field_value(raw: str) -> Any:
    """Decode ``raw`` as JSON, falling back to the plain string.

    ``90`` becomes an int, ``true`` a bool, ``null`` None and ``Go`` stays
    a string.
    """
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw


def parse_field_assignments(assignments: list[str] | None, command: str) -> dict[str, Any]:
    """Turn ``key=value`` strings into a payload dictionary.

    Raises:
        CliError: If an assignment has no ``=`` or an empty key
    """
    fields: dict[str, Any] = {}
    for assignment in assignments or []:
        key, separator, raw = assignment.partition("=")
        key = key.strip()
        if not separator or not key:
            raise create_cli_error(
                f"Invalid field assignment '{assignment}', expected key=value",
                command=command,
                code=ErrorCode.CLI_INVALID_ARGUMENTS,
                exit_code=CLIDefaults.EXIT_USAGE,
            )
        fields[key] = parse_field_value(raw)
    return fields
