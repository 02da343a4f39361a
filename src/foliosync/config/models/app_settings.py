"""Application and logging configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from foliosync.shared.constants import Application, Logging


class AppSettings(BaseModel):
    """Application configuration (name, version, debug mode)."""

    name: str = Field(default=Application.NAME, description="Application name")
    version: str = Field(default=Application.VERSION, description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")


class LoggingSettings(BaseModel):
    """Logging configuration.

    This class manages logging behavior including level, file output
    and the console renderer.
    """

    level: str = Field(default=Logging.DEFAULT_LEVEL, description="Logging level")
    file: str | None = Field(default=None, description="JSON log file path (disabled when unset)")
    rich_console: bool = Field(default=True, description="Render console logs with rich")


__all__ = ["AppSettings", "LoggingSettings"]
