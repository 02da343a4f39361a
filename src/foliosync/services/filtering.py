"""Search and category filtering of a collection, as on the admin list screens."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from foliosync.shared.models import RecordT

ALL_CATEGORIES = "All"
UNCATEGORIZED = "Other"


def _field(record: RecordT, name: str) -> str | None:
    value = getattr(record, name, None)
    return None if value is None else str(value)


def record_category(record: RecordT) -> str:
    """Category of ``record``; records without one count as ``Other``."""
    return _field(record, "category") or UNCATEGORIZED


def filter_records(
    records: Iterable[RecordT],
    query: str = "",
    category: str = ALL_CATEGORIES,
) -> list[RecordT]:
    """Return the records matching a search query and a category.

    The query is a case-insensitive substring of the name or the category.
    ``All`` matches every category.
    """
    needle = query.strip().lower()
    matches: list[RecordT] = []
    for record in records:
        if category != ALL_CATEGORIES and record_category(record) != category:
            continue
        if needle:
            name = (_field(record, "name") or "").lower()
            record_cat = (_field(record, "category") or "").lower()
            if needle not in name and needle not in record_cat:
                continue
        matches.append(record)
    return matches


def category_counts(records: Iterable[RecordT]) -> dict[str, int]:
    """Number of records per category, plus the ``All`` total."""
    counts = Counter(record_category(r) for r in records)
    return {ALL_CATEGORIES: sum(counts.values()), **dict(sorted(counts.items()))}


__all__ = [
    "ALL_CATEGORIES",
    "UNCATEGORIZED",
    "category_counts",
    "filter_records",
    "record_category",
]
