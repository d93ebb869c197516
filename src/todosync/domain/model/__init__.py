"""Public domain model surface."""

from __future__ import annotations

from todosync.domain.model.collection import (
    Collection,
    DuplicateRecordError,
    deduplicate,
    ensure_unique_ids,
    find,
    upsert,
    without,
)
from todosync.domain.model.record import Record, as_utc, ensure_utc, new_id, utcnow

__all__ = [
    "Collection",
    "DuplicateRecordError",
    "Record",
    "as_utc",
    "deduplicate",
    "ensure_unique_ids",
    "ensure_utc",
    "find",
    "new_id",
    "upsert",
    "utcnow",
    "without",
]
