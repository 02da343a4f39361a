"""
FolioSync Typer CLI Application

Admin surface over the collection sync layer: list, create, update and
delete records, and inspect or clear the local cache.
"""

from __future__ import annotations

from typing import Annotated

import typer

from foliosync.cli.commands import (
    cache_clear_command,
    cache_info_command,
    create_command,
    delete_command,
    list_command,
    update_command,
)
from foliosync.cli.common.context import CliContext, LogLevel, set_cli_context
from foliosync.cli.common.error_handler import handle_cli_error
from foliosync.cli.common.options import (
    category_option,
    config_option,
    field_option,
    json_output_option,
    log_level_option,
    query_option,
    version_option,
)
from foliosync.config import reload_config
from foliosync.shared.constants import CLICommands, CLIDefaults, CLIHelp
from foliosync.shared.logging import setup_structured_logger

__version__ = CLIDefaults.VERSION


def main_callback(log_level: LogLevel, config_path: str | None) -> None:
    """Process the global options before any command runs.

    Sets the CLI context, loads the configuration and configures logging.
    """
    set_cli_context(CliContext(log_level=log_level, config_path=config_path))
    settings = reload_config(config_path)
    setup_structured_logger(
        level=log_level.value,
        log_file=settings.logging.file,
        use_rich_console=settings.logging.rich_console,
    )


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    add_completion=False,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)

cache_app = typer.Typer(
    name=CLICommands.CACHE,
    help=CLIHelp.CACHE_HELP,
    no_args_is_help=True,
)
app.add_typer(cache_app, name=CLICommands.CACHE)


@app.callback()
def main(
    log_level: Annotated[LogLevel, log_level_option] = LogLevel.WARNING,
    config_path: Annotated[str | None, config_option] = None,
    version: Annotated[bool, version_option] = False,
) -> None:
    """Main CLI callback with error handling.

    ``--version`` is handled eagerly by its option callback.
    """
    try:
        main_callback(log_level, config_path)
    except typer.Exit:
        raise
    except Exception as e:  # noqa: BLE001
        exit_code = handle_cli_error(e, "main-callback")
        raise typer.Exit(exit_code) from e


@app.command(CLICommands.LIST, help=CLIHelp.LIST_HELP)
def list_command_typer(
    resource: Annotated[str, typer.Argument(help="Collection resource, e.g. skills")],
    query: Annotated[str, query_option] = "",
    category: Annotated[str, category_option] = CLIDefaults.DEFAULT_CATEGORY,
    json_output: Annotated[bool, json_output_option] = False,
) -> None:
    """
    List a collection.

    Fresh cached data is shown without a network call; stale or missing
    data is fetched first.

    Examples:
        foliosync list skills
        foliosync list skills --query react --category Frontend
        foliosync list skills --json
    """
    list_command(resource, query=query, category=category, json_output=json_output)


@app.command(CLICommands.CREATE, help=CLIHelp.CREATE_HELP)
def create_command_typer(
    resource: Annotated[str, typer.Argument(help="Collection resource, e.g. skills")],
    fields: Annotated[list[str] | None, field_option] = None,
    json_output: Annotated[bool, json_output_option] = False,
) -> None:
    """
    Create a record.

    Examples:
        foliosync create skills -f name=Go -f category=Backend -f level=80
    """
    create_command(resource, fields=fields, json_output=json_output)


@app.command(CLICommands.UPDATE, help=CLIHelp.UPDATE_HELP)
def update_command_typer(
    resource: Annotated[str, typer.Argument(help="Collection resource, e.g. skills")],
    record_id: Annotated[str, typer.Argument(help="Id of the record to update")],
    fields: Annotated[list[str] | None, field_option] = None,
    json_output: Annotated[bool, json_output_option] = False,
) -> None:
    """
    Update fields of a record.

    Examples:
        foliosync update skills 42 -f level=90 -f isVisible=false
    """
    update_command(resource, record_id, fields=fields, json_output=json_output)


@app.command(CLICommands.DELETE, help=CLIHelp.DELETE_HELP)
def delete_command_typer(
    resource: Annotated[str, typer.Argument(help="Collection resource, e.g. skills")],
    record_id: Annotated[str, typer.Argument(help="Id of the record to delete")],
    json_output: Annotated[bool, json_output_option] = False,
) -> None:
    """Delete a record."""
    delete_command(resource, record_id, json_output=json_output)


@cache_app.command(CLICommands.CACHE_INFO)
def cache_info_typer(
    resource: Annotated[str, typer.Argument(help="Collection resource, e.g. skills")],
    json_output: Annotated[bool, json_output_option] = False,
) -> None:
    """Show the cached entry of a collection (size, age, freshness)."""
    cache_info_command(resource, json_output=json_output)


@cache_app.command(CLICommands.CACHE_CLEAR)
def cache_clear_typer(
    resource: Annotated[str, typer.Argument(help="Collection resource, e.g. skills")],
    json_output: Annotated[bool, json_output_option] = False,
) -> None:
    """Remove the cached entry of a collection."""
    cache_clear_command(resource, json_output=json_output)


if __name__ == "__main__":
    app()
