"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import LocalStore, SelectionStore, TombstoneStore
from .remote import RemoteFetchResult, RemoteStore, SkippedRecord
from .signals import ChangeListener, ChangeSignal, Unsubscribe

__all__ = [
    "ChangeListener",
    "ChangeSignal",
    "LocalStore",
    "RemoteFetchResult",
    "RemoteStore",
    "SelectionStore",
    "SkippedRecord",
    "TombstoneStore",
    "Unsubscribe",
]
