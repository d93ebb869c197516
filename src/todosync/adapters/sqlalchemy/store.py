"""Local record store backed by a SQLAlchemy engine."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select

from todosync.config.sync import DEFAULT_STORAGE_KEY
from todosync.domain.model import Record

from .mappings import local_record_table, local_selection_table, local_tombstone_table

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.engine import Engine

    from todosync.domain.model import Collection
    from todosync.domain.ports import LocalStore, SelectionStore, TombstoneStore

log = getLogger(__name__)


class SqlAlchemyLocalStore:
    """Whole-collection persistence keyed by ``storage_key``.

    ``persist`` replaces every row for the key in one transaction; rows keep the
    collection order through their ``position``.
    """

    def __init__(self, engine: Engine, *, storage_key: str = DEFAULT_STORAGE_KEY) -> None:
        self.engine = engine
        self.storage_key = storage_key

    def load(self) -> Collection:
        stmt = (
            select(local_record_table)
            .where(local_record_table.c.storage_key == self.storage_key)
            .order_by(local_record_table.c.position)
        )
        with self.engine.connect() as connection:
            rows = connection.execute(stmt).mappings().all()
        return tuple(
            Record(
                id=row["id"],
                payload=row["payload"],
                modified_at=row["modified_at"],
                remote_handle=row["remote_handle"],
            )
            for row in rows
        )

    def persist(self, records: Collection) -> None:
        rows = [
            {
                "storage_key": self.storage_key,
                "id": record.id,
                "position": position,
                "payload": dict(record.payload),
                "modified_at": record.modified_at,
                "remote_handle": record.remote_handle,
            }
            for position, record in enumerate(records)
        ]
        with self.engine.begin() as connection:
            connection.execute(
                delete(local_record_table).where(
                    local_record_table.c.storage_key == self.storage_key
                )
            )
            if rows:
                connection.execute(insert(local_record_table), rows)
        log.debug("Persisted %d record(s) under %r", len(rows), self.storage_key)

    def load_selection(self) -> UUID | None:
        stmt = select(local_selection_table.c.record_id).where(
            local_selection_table.c.storage_key == self.storage_key
        )
        with self.engine.connect() as connection:
            return connection.execute(stmt).scalar_one_or_none()

    def persist_selection(self, record_id: UUID | None) -> None:
        with self.engine.begin() as connection:
            connection.execute(
                delete(local_selection_table).where(
                    local_selection_table.c.storage_key == self.storage_key
                )
            )
            if record_id is not None:
                connection.execute(
                    insert(local_selection_table).values(
                        storage_key=self.storage_key, record_id=record_id
                    )
                )

    def load_tombstones(self) -> frozenset[UUID]:
        stmt = select(local_tombstone_table.c.record_id).where(
            local_tombstone_table.c.storage_key == self.storage_key
        )
        with self.engine.connect() as connection:
            return frozenset(connection.execute(stmt).scalars())

    def persist_tombstones(self, record_ids: frozenset[UUID]) -> None:
        with self.engine.begin() as connection:
            connection.execute(
                delete(local_tombstone_table).where(
                    local_tombstone_table.c.storage_key == self.storage_key
                )
            )
            if record_ids:
                connection.execute(
                    insert(local_tombstone_table),
                    [
                        {"storage_key": self.storage_key, "record_id": record_id}
                        for record_id in sorted(record_ids)
                    ],
                )


if TYPE_CHECKING:
    _local_check: LocalStore = SqlAlchemyLocalStore(...)  # type: ignore[arg-type]
    _selection_check: SelectionStore = SqlAlchemyLocalStore(...)  # type: ignore[arg-type]
    _tombstone_check: TombstoneStore = SqlAlchemyLocalStore(...)  # type: ignore[arg-type]
