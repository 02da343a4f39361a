"""Record models (Pydantic v2).

A record is any identifiable entity of a portfolio collection. The sync
layer only relies on ``id``; domain models such as ``Skill`` add typed
fields on top. Field names are snake_case in Python and camelCase on the
wire, matching the REST API.
"""

from __future__ import annotations

import uuid
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from foliosync.shared.constants import TemporaryIds

__all__ = [
    "RECORD_TYPES",
    "Record",
    "RecordT",
    "Skill",
    "apply_patch",
    "is_temporary_id",
    "new_temporary_id",
    "normalize_fields",
    "record_type_for",
    "to_wire",
]


class Record(BaseModel):
    """Base model for an identifiable collection record.

    Unknown fields are kept, so a plain ``Record`` can carry any entity the
    API returns.
    """

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(..., min_length=1, description="Server-assigned id (or a TemporaryId while pending).")


RecordT = TypeVar("RecordT", bound=Record)


class Skill(Record):
    """A skill shown on the portfolio skills page."""

    name: str = Field(..., min_length=1, description="Skill name.")
    category: str | None = Field(default=None, description="Category (Frontend, Backend, ...).")
    level: int | None = Field(default=None, ge=0, le=100, description="Proficiency 0-100.")
    icon: str | None = Field(default=None, description="Short icon text or emoji.")
    description: str | None = Field(default=None, description="Free-text summary.")
    image_url: str | None = Field(default=None, description="Public URL of the uploaded icon.")
    image_path: str | None = Field(default=None, description="Storage path of the uploaded icon.")
    is_visible: bool = Field(default=True, description="Shown on public pages.")
    order: int = Field(default=0, description="Display order within the category.")


def new_temporary_id() -> str:
    """Return a fresh TemporaryId for an optimistically created record."""
    return f"{TemporaryIds.PREFIX}{uuid.uuid4().hex}"


def is_temporary_id(record_id: str) -> bool:
    """Check whether an id is a TemporaryId rather than a server id."""
    return record_id.startswith(TemporaryIds.PREFIX)


def normalize_fields(record_type: type[Record], fields: dict[str, Any]) -> dict[str, Any]:
    """Map wire (camelCase) keys to Python field names; unknown keys pass through."""
    by_alias = {
        info.alias: name
        for name, info in record_type.model_fields.items()
        if info.alias
    }
    return {by_alias.get(key, key): value for key, value in fields.items()}


def to_wire(record_type: type[Record], fields: dict[str, Any]) -> dict[str, Any]:
    """Map Python field names to their wire aliases; unknown keys pass through."""
    wire: dict[str, Any] = {}
    for key, value in normalize_fields(record_type, fields).items():
        info = record_type.model_fields.get(key)
        wire[(info.alias if info and info.alias else key)] = value
    return wire


def apply_patch(record: RecordT, patch: dict[str, Any]) -> RecordT:
    """Return a validated copy of ``record`` with ``patch`` applied.

    The id cannot be patched.

    Raises:
        pydantic.ValidationError: If the patched record is invalid
    """
    record_type = type(record)
    changes = normalize_fields(record_type, patch)
    changes.pop("id", None)
    return record_type.model_validate({**record.model_dump(), **changes})


# Collections with a dedicated model; any other resource uses plain Record.
RECORD_TYPES: dict[str, type[Record]] = {
    "skills": Skill,
}


def record_type_for(resource: str) -> type[Record]:
    """Return the model registered for ``resource``, defaulting to Record."""
    return RECORD_TYPES.get(resource, Record)
