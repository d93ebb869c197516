"""To-do list semantics on top of synchronised records.

A to-do is a ``Record`` whose payload holds ``title`` (str) and
``is_completed`` (bool). Every mutation goes through the coordinator, so it is
written locally first and pushed to the remote store afterwards.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from todosync.domain.model import Record, find, utcnow

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime
    from uuid import UUID

    from todosync.domain.model import Collection
    from todosync.domain.sync import SyncCoordinator

TITLE = "title"
IS_COMPLETED = "is_completed"


class InvalidTodoError(ValueError):
    """Raised when a payload does not describe a to-do item."""


def validate_todo_fields(fields: Mapping[str, object]) -> dict[str, object]:
    """Return the to-do fields of ``fields``; raise if a required one is missing."""

    title = fields.get(TITLE)
    is_completed = fields.get(IS_COMPLETED)
    if not isinstance(title, str):
        raise InvalidTodoError(f"{TITLE!r} must be a string")
    if not isinstance(is_completed, bool):
        raise InvalidTodoError(f"{IS_COMPLETED!r} must be a boolean")
    return {**fields, TITLE: title, IS_COMPLETED: is_completed}


def new_todo(title: str, *, clock: Callable[[], datetime] = utcnow) -> Record:
    cleaned = title.strip()
    if not cleaned:
        raise InvalidTodoError("Title must not be blank")
    return Record(payload={TITLE: cleaned, IS_COMPLETED: False}, modified_at=clock())


@dataclass(frozen=True, slots=True)
class TodoItem:
    """Read-only view of a to-do record."""

    record: Record

    @property
    def id(self) -> UUID:
        return self.record.id

    @property
    def title(self) -> str:
        return str(self.record.payload.get(TITLE, ""))

    @property
    def is_completed(self) -> bool:
        return bool(self.record.payload.get(IS_COMPLETED, False))

    @property
    def is_synced(self) -> bool:
        return self.record.is_synced


class TodoList:
    """User-facing to-do operations."""

    def __init__(
        self,
        coordinator: SyncCoordinator,
        *,
        clock: Callable[[], datetime] = utcnow,
        rng: random.Random | None = None,
    ) -> None:
        self.coordinator = coordinator
        self._clock = clock
        self._rng = rng or random.Random()

    @property
    def items(self) -> list[TodoItem]:
        return [TodoItem(record) for record in self.coordinator.records]

    @property
    def selected(self) -> TodoItem | None:
        record = self.coordinator.selection
        return TodoItem(record) if record is not None else None

    def get(self, todo_id: UUID) -> TodoItem:
        record = find(self.coordinator.records, todo_id)
        if record is None:
            raise KeyError(f"Unknown to-do: {todo_id}")
        return TodoItem(record)

    async def add(self, title: str) -> TodoItem:
        record = new_todo(title, clock=self._clock)
        return TodoItem(await self.coordinator.save(record))

    async def rename(self, todo_id: UUID, title: str) -> TodoItem:
        cleaned = title.strip()
        if not cleaned:
            raise InvalidTodoError("Title must not be blank")
        record = self.get(todo_id).record.touch(clock=self._clock, **{TITLE: cleaned})
        return TodoItem(await self.coordinator.save(record))

    async def toggle(self, todo_id: UUID) -> TodoItem:
        item = self.get(todo_id)
        record = item.record.touch(clock=self._clock, **{IS_COMPLETED: not item.is_completed})
        return TodoItem(await self.coordinator.save(record))

    async def remove(self, todo_id: UUID) -> bool:
        return await self.coordinator.delete(todo_id)

    def select(self, todo_id: UUID | None) -> TodoItem | None:
        record = self.coordinator.select(todo_id)
        return TodoItem(record) if record is not None else None

    def select_random(self) -> TodoItem | None:
        """Select a random to-do; no-op on an empty list."""

        records: Collection = self.coordinator.records
        if not records:
            return None
        choice = self._rng.choice(records)
        return self.select(choice.id)
