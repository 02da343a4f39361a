"""Cache command implementation."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from rich.console import Console
from rich.table import Table

from foliosync.cli.common.context import get_cli_context
from foliosync.cli.common.error_handler import format_json_output, handle_cli_errors
from foliosync.config import get_config
from foliosync.services import create_store
from foliosync.shared.constants import CLICommands
from foliosync.shared.models import now_ms, record_type_for

logger = logging.getLogger(__name__)
console = Console()


def _cache_info(resource: str) -> dict[str, Any]:
    settings = get_config()
    store = create_store(settings.cache)
    entry = store.read(resource, record_type_for(resource))

    info: dict[str, Any] = {
        "resource": resource,
        "storage_key": store.storage_key(resource),
        "backend": settings.cache.backend,
        "ttl_ms": settings.cache.ttl_ms,
        "config_path": get_cli_context().config_path,
        "exists": entry is not None,
    }
    if entry is not None:
        now = now_ms()
        info.update(
            {
                "records": len(entry.data),
                "timestamp": entry.timestamp,
                "confirmed_at": datetime.fromtimestamp(entry.timestamp / 1000, tz=timezone.utc).isoformat(),
                "age_ms": entry.age_ms(now),
                "fresh": store.is_fresh(entry, settings.cache.ttl_ms, now=now),
            },
        )
    return info


@handle_cli_errors(f"{CLICommands.CACHE} {CLICommands.CACHE_INFO}")
def cache_info_command(resource: str, *, json_output: bool = False) -> None:
    """Show the persisted cache entry of a collection."""
    info = _cache_info(resource)

    if json_output:
        sys.stdout.buffer.write(format_json_output(CLICommands.CACHE, success=True, data=info))
        sys.stdout.buffer.write(b"\n")
        sys.stdout.buffer.flush()
        return

    if not info["exists"]:
        console.print(f"[yellow]No cache entry for '{resource}'[/yellow]")
        return

    console.print("[blue]Cache Entry[/blue]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Resource", resource)
    table.add_row("Storage Key", info["storage_key"])
    table.add_row("Backend", info["backend"])
    table.add_row("Config", info["config_path"] or "defaults")
    table.add_row("Records", str(info["records"]))
    table.add_row("Confirmed At", info["confirmed_at"])
    table.add_row("Age", f"{info['age_ms'] / 1000:.1f} s")
    table.add_row("Fresh", "yes" if info["fresh"] else "no")

    console.print(table)


@handle_cli_errors(f"{CLICommands.CACHE} {CLICommands.CACHE_CLEAR}")
def cache_clear_command(resource: str, *, json_output: bool = False) -> None:
    """Remove the persisted cache entry of a collection."""
    store = create_store(get_config().cache)
    store.clear(resource)

    if json_output:
        sys.stdout.buffer.write(
            format_json_output(CLICommands.CACHE, success=True, data={"resource": resource, "cleared": True}),
        )
        sys.stdout.buffer.write(b"\n")
        sys.stdout.buffer.flush()
        return
    console.print(f"[green]Cache cleared for '{resource}'[/green]")
