"""FolioSync Error Handling Module

This module defines the error handling system for FolioSync, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved
- Cancellation is not a failure: RequestCancelledError sits outside the
  Infrastructure/Domain split so callers can swallow it in one place
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for FolioSync.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # Network and API Errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_REQUEST_FAILED = "API_REQUEST_FAILED"
    API_TIMEOUT = "API_TIMEOUT"
    API_INVALID_RESPONSE = "API_INVALID_RESPONSE"

    # Synchronization Errors
    FETCH_FAILED = "FETCH_FAILED"
    MUTATION_FAILED = "MUTATION_FAILED"
    OPERATION_CANCELLED = "OPERATION_CANCELLED"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    # Cache Errors
    CACHE_READ_FAILED = "CACHE_READ_FAILED"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"
    CACHE_CORRUPTED = "CACHE_CORRUPTED"
    STORAGE_QUOTA_EXCEEDED = "STORAGE_QUOTA_EXCEEDED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Configuration Errors
    CONFIG_ERROR = "CONFIG_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"

    # CLI Errors
    CLI_INVALID_ARGUMENTS = "CLI_INVALID_ARGUMENTS"
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContext:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to ensure safe serialization in structured logs.

    Attributes:
        resource: Optional collection resource name (e.g. "skills")
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    resource: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self) -> dict[str, Any]:
        """Export context as a dict for structured logs and JSON output.

        Unset fields are omitted; ``additional_data`` is always present.

        Example:
            >>> ErrorContext(resource="skills").safe_dict()
            {'resource': 'skills', 'additional_data': {}}
        """
        data: dict[str, Any] = {}
        if self.resource is not None:
            data["resource"] = self.resource
        if self.operation is not None:
            data["operation"] = self.operation
        data["additional_data"] = self.additional_data if self.additional_data is not None else {}
        return data


class FolioSyncError(Exception):
    """Base exception class for all FolioSync errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize FolioSyncError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    @property
    def resource(self) -> str | None:
        """Collection resource the error relates to, if any."""
        return self.context.resource

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error with code, message,
            context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(FolioSyncError):
    """Domain-specific errors.

    These errors occur when collection rules are violated.

    Examples:
    - Update or delete of an id that is not in the collection
    - A persisted cache entry that no longer validates
    """


class InfrastructureError(FolioSyncError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems
    like the REST API or the storage backend.
    """


class ApplicationError(FolioSyncError):
    """Application-level errors (configuration, CLI arguments)."""


class CliError(ApplicationError):
    """CLI-specific error carrying the command and its exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


class RequestCancelledError(FolioSyncError):
    """A request was superseded by a newer one or aborted on unmount.

    Never a user-facing failure: callers swallow it.
    """


class TransportError(InfrastructureError):
    """The transport could not complete an HTTP exchange."""


class FetchFailedError(InfrastructureError):
    """Reading a collection failed (network, HTTP status or parse error)."""


class MutationFailedError(InfrastructureError):
    """A create/update/delete call failed; the optimistic change was rolled back."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        verb: str | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.verb = verb


class StorageWriteError(InfrastructureError):
    """Persisting a cache entry failed. Logged only."""


class CacheCorruptError(DomainError):
    """A stored cache entry could not be parsed. Logged, then purged."""


class RecordNotFoundError(DomainError):
    """The requested record id is not present in the collection."""


def create_fetch_failed_error(
    resource: str,
    message: str,
    status: int | None = None,
    original_error: Exception | None = None,
) -> FetchFailedError:
    """Create a fetch failure with resource context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"status": status} if status is not None else None
    )
    context = ErrorContext(
        resource=resource,
        operation="fetch",
        additional_data=additional_data,
    )
    return FetchFailedError(
        ErrorCode.FETCH_FAILED,
        message,
        context,
        original_error,
    )


def create_mutation_failed_error(
    resource: str,
    verb: str,
    message: str,
    record_id: str | None = None,
    status: int | None = None,
    original_error: Exception | None = None,
) -> MutationFailedError:
    """Create a mutation failure with resource and verb context."""
    additional_data: dict[str, PrimitiveContextValue] = {"verb": verb}
    if record_id is not None:
        additional_data["record_id"] = record_id
    if status is not None:
        additional_data["status"] = status

    context = ErrorContext(
        resource=resource,
        operation=f"mutate_{verb}",
        additional_data=additional_data,
    )
    return MutationFailedError(
        ErrorCode.MUTATION_FAILED,
        message,
        context,
        original_error,
        verb=verb,
    )


def create_cancelled_error(resource: str, sequence: int) -> RequestCancelledError:
    """Create a cancellation outcome for a superseded fetch."""
    context = ErrorContext(
        resource=resource,
        operation="fetch",
        additional_data={"sequence": sequence},
    )
    return RequestCancelledError(
        ErrorCode.OPERATION_CANCELLED,
        f"Fetch #{sequence} for '{resource}' was superseded",
        context,
    )


def create_record_not_found_error(resource: str, record_id: str, operation: str) -> RecordNotFoundError:
    """Create a record-not-found error for update/delete lookups."""
    context = ErrorContext(
        resource=resource,
        operation=operation,
        additional_data={"record_id": record_id},
    )
    return RecordNotFoundError(
        ErrorCode.RECORD_NOT_FOUND,
        f"Record '{record_id}' not found in '{resource}'",
        context,
    )


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        context,
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    code: ErrorCode = ErrorCode.CLI_UNEXPECTED_ERROR,
    original_error: Exception | None = None,
    exit_code: int = 1,
) -> CliError:
    """Create a CLI error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"command": command} if command else None
    )
    context = ErrorContext(
        operation=command,
        additional_data=additional_data,
    )
    return CliError(
        code,
        message,
        context,
        original_error,
        command,
        exit_code,
    )
