"""Command implementations for the FolioSync CLI."""

from .cache import cache_clear_command, cache_info_command
from .collection import create_command, delete_command, list_command, update_command

__all__ = [
    "cache_clear_command",
    "cache_info_command",
    "create_command",
    "delete_command",
    "list_command",
    "update_command",
]
