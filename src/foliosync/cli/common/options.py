"""
Reusable Typer Options Module

Option definitions shared by the FolioSync commands, used as
``Annotated[<type>, <option>]`` metadata.
"""

from __future__ import annotations

import typer

from foliosync.shared.constants import CLIDefaults, CLIHelp, CLIOptions


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=CLIDefaults.VERSION))
        raise typer.Exit


log_level_option = typer.Option(
    CLIOptions.LOG_LEVEL,
    case_sensitive=False,
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: WARNING.",
)

config_option = typer.Option(
    "--config",
    help="Path of a TOML configuration file.",
)

json_output_option = typer.Option(
    CLIOptions.JSON,
    help=CLIHelp.JSON_HELP,
)

version_option = typer.Option(
    CLIOptions.VERSION,
    CLIOptions.VERSION_SHORT,
    help="Show version information and exit.",
    callback=version_callback,
    is_eager=True,
)

query_option = typer.Option(
    CLIOptions.QUERY,
    CLIOptions.QUERY_SHORT,
    help=CLIHelp.QUERY_HELP,
)

category_option = typer.Option(
    CLIOptions.CATEGORY,
    CLIOptions.CATEGORY_SHORT,
    help=CLIHelp.CATEGORY_HELP,
)

field_option = typer.Option(
    CLIOptions.FIELD,
    CLIOptions.FIELD_SHORT,
    help=CLIHelp.FIELD_HELP,
)
