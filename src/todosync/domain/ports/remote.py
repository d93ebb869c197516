"""Port for the remote record store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from todosync.domain.model import Collection, Record


@dataclass(slots=True, frozen=True)
class SkippedRecord:
    """A fetched entry that could not be decoded into a record."""

    reference: str
    reason: str


@dataclass(slots=True)
class RemoteFetchResult:
    """Every record currently held by the remote store."""

    records: Collection
    skipped: tuple[SkippedRecord, ...] = field(default_factory=tuple)


@runtime_checkable
class RemoteStore(Protocol):
    """Effectful access to the remote copy of the collection.

    Implementations raise ``todosync.domain.sync.errors.RemoteStoreError``
    subclasses on failure.
    """

    async def fetch_all(self) -> RemoteFetchResult: ...

    async def save(self, record: Record) -> Record:
        """Store ``record``; return it with remote handle and server time populated."""
        ...

    async def delete(self, record: Record) -> None: ...


__all__ = ["RemoteFetchResult", "RemoteStore", "SkippedRecord"]
