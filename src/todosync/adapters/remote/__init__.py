"""Public interface for the HTTP remote store adapter."""

from __future__ import annotations

from .client import HttpRemoteStore
from .schema import ErrorResponse, RecordListResponse, RemoteRecordPayload
from .translator import parse_record, parse_records, record_to_payload

__all__ = [
    "ErrorResponse",
    "HttpRemoteStore",
    "RecordListResponse",
    "RemoteRecordPayload",
    "parse_record",
    "parse_records",
    "record_to_payload",
]
