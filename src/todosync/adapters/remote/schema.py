"""Pydantic models describing the remote record store payloads."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RemoteBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RemoteRecordPayload(RemoteBaseModel):
    id: UUID
    fields: dict[str, object]
    modified_at: datetime | None = None
    handle: str | None = None

    _normalize_handle = field_validator("handle", mode="before")(_blank_to_none)
    _normalize_modified_at = field_validator("modified_at", mode="before")(_blank_to_none)


class RecordListResponse(RemoteBaseModel):
    # entries are validated one by one so a bad entry does not fail the listing
    records: list[object]


class ErrorResponse(RemoteBaseModel):
    error: str
    message: str = ""
