"""Shared models for FolioSync."""

from .cache import CacheEntry, now_ms
from .records import (
    RECORD_TYPES,
    Record,
    RecordT,
    Skill,
    apply_patch,
    is_temporary_id,
    new_temporary_id,
    normalize_fields,
    record_type_for,
    to_wire,
)

__all__ = [
    "RECORD_TYPES",
    "CacheEntry",
    "Record",
    "RecordT",
    "Skill",
    "apply_patch",
    "is_temporary_id",
    "new_temporary_id",
    "normalize_fields",
    "now_ms",
    "record_type_for",
    "to_wire",
]
