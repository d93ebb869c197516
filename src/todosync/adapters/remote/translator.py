"""Translate remote payloads to records and back."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from todosync.domain.model import Record
from todosync.domain.ports import SkippedRecord
from todosync.domain.sync.errors import RecordDecodeError

from .schema import RemoteRecordPayload

if TYPE_CHECKING:
    from todosync.domain.model import Collection

log = getLogger(__name__)

type FieldValidator = Callable[[Mapping[str, object]], Mapping[str, object]]


def _reference(raw: object) -> str:
    if isinstance(raw, Mapping):
        identifier = raw.get("id")  # pyright: ignore[reportUnknownMemberType]
        if identifier is not None:
            return str(identifier)
    return "<no id>"


def parse_record(raw: object, *, validate_fields: FieldValidator | None = None) -> Record:
    """Decode one remote entry, raising ``RecordDecodeError`` if it is unusable."""

    try:
        payload = (
            raw
            if isinstance(raw, RemoteRecordPayload)
            else RemoteRecordPayload.model_validate(raw)
        )
        fields = validate_fields(payload.fields) if validate_fields else payload.fields
    except (ValidationError, ValueError, TypeError) as exc:
        raise RecordDecodeError(f"Invalid remote record {_reference(raw)}: {exc}") from exc

    return Record(
        id=payload.id,
        payload=fields,
        modified_at=payload.modified_at,
        remote_handle=payload.handle,
    )


def parse_records(
    entries: list[object],
    *,
    validate_fields: FieldValidator | None = None,
) -> tuple[Collection, tuple[SkippedRecord, ...]]:
    """Decode every entry, collecting the ones that fail instead of aborting."""

    records: list[Record] = []
    skipped: list[SkippedRecord] = []
    for raw in entries:
        try:
            records.append(parse_record(raw, validate_fields=validate_fields))
        except RecordDecodeError as exc:
            log.debug("Skipping remote entry: %s", exc)
            skipped.append(SkippedRecord(reference=_reference(raw), reason=str(exc)))
    return tuple(records), tuple(skipped)


def record_to_payload(record: Record) -> dict[str, object]:
    """JSON body for storing ``record`` remotely."""

    return RemoteRecordPayload(
        id=record.id,
        fields=dict(record.payload),
        modified_at=record.modified_at,
        handle=record.remote_handle,
    ).model_dump(mode="json")
