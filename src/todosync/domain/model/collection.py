"""Helpers for collections of records.

A collection is a plain ``tuple[Record, ...]`` whose ids are unique. The helpers
here never mutate their input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from .record import Record

type Collection = tuple[Record, ...]


class DuplicateRecordError(ValueError):
    """Raised when a collection holds the same id more than once."""

    def __init__(self, record_id: UUID) -> None:
        super().__init__(f"Duplicate record id in collection: {record_id}")
        self.record_id = record_id


def ensure_unique_ids(records: Iterable[Record]) -> Collection:
    """Return ``records`` as a collection, raising on a repeated id."""

    seen: set[UUID] = set()
    result: list[Record] = []
    for record in records:
        if record.id in seen:
            raise DuplicateRecordError(record.id)
        seen.add(record.id)
        result.append(record)
    return tuple(result)


def deduplicate(records: Iterable[Record]) -> tuple[Collection, tuple[UUID, ...]]:
    """Keep the first record per id; also return the ids that were repeated."""

    seen: set[UUID] = set()
    kept: list[Record] = []
    repeated: list[UUID] = []
    for record in records:
        if record.id in seen:
            repeated.append(record.id)
            continue
        seen.add(record.id)
        kept.append(record)
    return tuple(kept), tuple(repeated)


def find(records: Iterable[Record], record_id: UUID) -> Record | None:
    for record in records:
        if record.id == record_id:
            return record
    return None


def upsert(records: Collection, record: Record) -> Collection:
    """Replace the record with the same id in place, or append it."""

    for position, existing in enumerate(records):
        if existing.id == record.id:
            return (*records[:position], record, *records[position + 1 :])
    return (*records, record)


def without(records: Collection, record_id: UUID) -> Collection:
    return tuple(record for record in records if record.id != record_id)
