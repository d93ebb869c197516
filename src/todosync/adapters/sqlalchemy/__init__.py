"""SQLAlchemy adapter package for todosync."""

from __future__ import annotations

from .bootstrap import shutdown, startup
from .mappings import (
    UTCDateTime,
    local_record_table,
    local_selection_table,
    local_tombstone_table,
    metadata,
)
from .store import SqlAlchemyLocalStore

__all__ = [
    "SqlAlchemyLocalStore",
    "UTCDateTime",
    "local_record_table",
    "local_selection_table",
    "local_tombstone_table",
    "metadata",
    "shutdown",
    "startup",
]
