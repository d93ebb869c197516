"""Ports for the durable local copy of the collection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from todosync.domain.model import Collection


@runtime_checkable
class LocalStore(Protocol):
    """Whole-collection persistence under a fixed storage key."""

    def load(self) -> Collection: ...

    def persist(self, records: Collection) -> None: ...


@runtime_checkable
class SelectionStore(Protocol):
    """Persistence for the id of the currently selected record."""

    def load_selection(self) -> UUID | None: ...

    def persist_selection(self, record_id: UUID | None) -> None: ...


@runtime_checkable
class TombstoneStore(Protocol):
    """Persistence for ids deleted locally whose remote copy may still exist."""

    def load_tombstones(self) -> frozenset[UUID]: ...

    def persist_tombstones(self, record_ids: frozenset[UUID]) -> None: ...
