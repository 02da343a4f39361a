"""
FolioSync Constants Module

This module provides centralized constants for FolioSync.
All magic values and configuration constants are defined here.
"""

from .application import (
    Application,
    CLICommands,
    CLIDefaults,
    CLIHelp,
    CLIOptions,
    Logging,
)
from .cache import BASE_MINUTE_MS, BASE_SECOND_MS, Cache, TemporaryIds
from .network import HTTPMethod, MutationVerb, NetworkConfig

__all__ = [
    "BASE_MINUTE_MS",
    "BASE_SECOND_MS",
    "Application",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CLIOptions",
    "Cache",
    "HTTPMethod",
    "Logging",
    "MutationVerb",
    "NetworkConfig",
    "TemporaryIds",
]
