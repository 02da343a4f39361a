"""Settings loader and singleton manager.

This module handles:
- Configuration file loading from TOML
- Thread-safe singleton pattern for the Settings instance
- Configuration update and save operations
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from foliosync.config.models.settings import Settings
from foliosync.shared.errors import (
    ApplicationError,
    ErrorCode,
    ErrorContext,
    create_config_error,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("config/foliosync.toml"),
    Path("foliosync.toml"),
    Path.home() / ".foliosync" / "config.toml",
)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking to keep the common path lock-free.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def get_config(self) -> Settings:
        """Get the global settings instance, loading it if necessary."""
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings()

        return self._instance

    def reload_config(self, config_path: str | Path | None = None) -> Settings:
        """Reload the global settings instance from configuration files."""
        with self._lock:
            self._instance = load_settings(config_path)

        return self._instance

    def update_and_save_config(
        self,
        updater: Callable[[Settings], None],
        config_path: Path | str = DEFAULT_CONFIG_PATHS[0],
    ) -> None:
        """Update configuration, validate, save to file, and reload global cache.

        Args:
            updater: Callable that modifies a Settings copy in-place
            config_path: Path to save the configuration file

        Raises:
            ApplicationError: If validation or saving fails
        """
        config_path = Path(config_path)

        with self._lock:
            try:
                updated = self.get_config().model_copy(deep=True)
                updater(updated)
                updated = Settings.model_validate(updated.model_dump())
                updated.to_toml_file(config_path)
                self._instance = updated

                logger.info("Configuration updated and saved successfully to %s", config_path)

            except (ValidationError, OSError, ValueError) as e:
                logger.exception("Failed to update and save configuration")
                raise ApplicationError(
                    code=ErrorCode.CONFIG_ERROR,
                    message=f"Configuration update failed: {e}",
                    context=ErrorContext(
                        operation="update_and_save_config",
                        additional_data={"config_path": str(config_path)},
                    ),
                    original_error=e,
                ) from e

    def reset(self) -> None:
        """Drop the cached instance (used by tests)."""
        with self._lock:
            self._instance = None


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. If None, the default
            locations are tried before falling back to environment variables.

    Returns:
        Settings instance loaded from the specified source

    Raises:
        ApplicationError: If the file exists but holds invalid configuration
        FileNotFoundError: If an explicit config_path does not exist
    """
    candidates = [Path(config_path)] if config_path else [p for p in DEFAULT_CONFIG_PATHS if p.exists()]

    for candidate in candidates:
        try:
            return Settings.from_toml_file(candidate)
        except ValidationError as e:
            raise create_config_error(
                f"Invalid configuration in {candidate}: {e.error_count()} error(s)",
                config_key=str(candidate),
                operation="load_settings",
                original_error=e,
            ) from e

    return Settings()


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config(config_path)


def update_and_save_config(
    updater: Callable[[Settings], None],
    config_path: Path | str = DEFAULT_CONFIG_PATHS[0],
) -> None:
    """Update configuration, validate, save to file, and reload global cache."""
    _loader.update_and_save_config(updater, config_path)


def reset_config() -> None:
    """Forget the cached settings instance."""
    _loader.reset()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
    "update_and_save_config",
]
