"""Collection commands: list, create, update and delete.

Each command opens the collection through ``use_collection``, waits for any
revalidation the mount triggered, then reads or mutates it.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, TypeVar

from rich.console import Console
from rich.table import Table

from foliosync.cli.common.error_handler import format_json_output, handle_cli_errors
from foliosync.cli.common.fields import parse_field_assignments
from foliosync.config import Settings, get_config
from foliosync.services import AiohttpTransport, CollectionHandle, filter_records, use_collection
from foliosync.shared.constants import CLICommands, CLIDefaults
from foliosync.shared.models import Record, record_type_for

logger = logging.getLogger(__name__)
console = Console()

T = TypeVar("T")

# Columns shown first when present; the rest follow in model order.
PREFERRED_COLUMNS = ("id", "name", "category", "level", "isVisible", "order")


def create_transport(settings: Settings) -> AiohttpTransport:
    """Build the HTTP transport for a command run."""
    return AiohttpTransport.from_settings(settings.api)


async def _with_collection(
    resource: str,
    action: Callable[[CollectionHandle[Record]], Awaitable[T]],
) -> T:
    settings = get_config()
    transport = create_transport(settings)
    try:
        async with use_collection(
            resource,
            record_type=record_type_for(resource),
            transport=transport,
            settings=settings,
        ) as handle:
            await handle.wait_idle()
            return await action(handle)
    finally:
        await transport.close()


def _dump(record: Record) -> dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


def _write_json(command: str, data: Any) -> None:
    sys.stdout.buffer.write(format_json_output(command, success=True, data=data))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()


def _columns(rows: list[dict[str, Any]]) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        for key, value in row.items():
            if value is not None and not isinstance(value, (dict, list)):
                seen.setdefault(key, None)
    preferred = [c for c in PREFERRED_COLUMNS if c in seen]
    return preferred + [c for c in seen if c not in preferred]


def print_records_table(title: str, records: list[Record]) -> None:
    """Render records as a rich table."""
    rows = [_dump(r) for r in records]
    table = Table(title=title, show_header=True, header_style="bold magenta")
    columns = _columns(rows)
    for column in columns:
        table.add_column(column, style="cyan" if column == "id" else None, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    console.print(table)


@handle_cli_errors(CLICommands.LIST)
def list_command(
    resource: str,
    *,
    query: str = "",
    category: str = CLIDefaults.DEFAULT_CATEGORY,
    json_output: bool = False,
) -> None:
    """List a collection, filtered by query and category."""

    async def action(handle: CollectionHandle[Record]) -> tuple[list[Record], Any]:
        return handle.data, handle.error

    records, error = asyncio.run(_with_collection(resource, action))
    if error is not None and not records:
        raise error

    shown = filter_records(records, query, category)
    if json_output:
        _write_json(
            CLICommands.LIST,
            {
                "resource": resource,
                "count": len(shown),
                "total": len(records),
                "warning": error.message if error is not None else None,
                "records": [_dump(r) for r in shown],
            },
        )
        return

    if error is not None:
        console.print(f"[yellow]Showing cached data, refresh failed: {error.message}[/yellow]")
    if not shown:
        console.print(f"[yellow]No {resource} found[/yellow]")
        return
    print_records_table(f"{resource} ({len(shown)}/{len(records)})", shown)


@handle_cli_errors(CLICommands.CREATE)
def create_command(resource: str, *, fields: list[str] | None = None, json_output: bool = False) -> None:
    """Create a record from ``key=value`` fields."""
    payload = parse_field_assignments(fields, CLICommands.CREATE)

    async def action(handle: CollectionHandle[Record]) -> Record:
        return await handle.create(payload)

    created = asyncio.run(_with_collection(resource, action))
    if json_output:
        _write_json(CLICommands.CREATE, {"resource": resource, "record": _dump(created)})
        return
    console.print(f"[green]Created {resource} record {created.id}[/green]")
    print_records_table(resource, [created])


@handle_cli_errors(CLICommands.UPDATE)
def update_command(
    resource: str,
    record_id: str,
    *,
    fields: list[str] | None = None,
    json_output: bool = False,
) -> None:
    """Update fields of a record."""
    patch = parse_field_assignments(fields, CLICommands.UPDATE)

    async def action(handle: CollectionHandle[Record]) -> Record:
        return await handle.update(record_id, patch)

    updated = asyncio.run(_with_collection(resource, action))
    if json_output:
        _write_json(CLICommands.UPDATE, {"resource": resource, "record": _dump(updated)})
        return
    console.print(f"[green]Updated {resource} record {updated.id}[/green]")
    print_records_table(resource, [updated])


@handle_cli_errors(CLICommands.DELETE)
def delete_command(resource: str, record_id: str, *, json_output: bool = False) -> None:
    """Delete a record."""

    async def action(handle: CollectionHandle[Record]) -> None:
        await handle.remove(record_id)

    asyncio.run(_with_collection(resource, action))
    if json_output:
        _write_json(CLICommands.DELETE, {"resource": resource, "id": record_id})
        return
    console.print(f"[green]Deleted {resource} record {record_id}[/green]")
