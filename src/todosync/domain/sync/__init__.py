"""Synchronization of the local collection with a remote store."""

from __future__ import annotations

from .coordinator import SyncCoordinator
from .errors import (
    NetworkUnavailableError,
    NotAuthenticatedError,
    QuotaExceededError,
    RecordDecodeError,
    RemoteStoreError,
    ServiceBusyError,
    SyncError,
    SyncErrorReason,
    classify_error,
)
from .signals import ChangeFeed
from .state import SyncPhase, SyncState, SyncStateHolder

__all__ = [
    "ChangeFeed",
    "NetworkUnavailableError",
    "NotAuthenticatedError",
    "QuotaExceededError",
    "RecordDecodeError",
    "RemoteStoreError",
    "ServiceBusyError",
    "SyncCoordinator",
    "SyncError",
    "SyncErrorReason",
    "SyncPhase",
    "SyncState",
    "SyncStateHolder",
    "classify_error",
]
