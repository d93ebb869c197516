"""SQLAlchemy table metadata for the local record store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
    Uuid,
)

UUIDColumnType = Uuid[uuid.UUID]

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


local_record_table = Table(
    "local_records",
    metadata,
    Column("storage_key", String(200), primary_key=True),
    Column("id", UUIDColumnType, primary_key=True),
    Column("position", Integer, nullable=False),
    Column("payload", JSON, nullable=False),
    Column("modified_at", UTCDateTime(), nullable=True),
    Column("remote_handle", String(512), nullable=True),
)

local_selection_table = Table(
    "local_selection",
    metadata,
    Column("storage_key", String(200), primary_key=True),
    Column("record_id", UUIDColumnType, nullable=True),
)

local_tombstone_table = Table(
    "local_tombstones",
    metadata,
    Column("storage_key", String(200), primary_key=True),
    Column("record_id", UUIDColumnType, primary_key=True),
)
