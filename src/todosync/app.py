"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from todosync.adapters.remote import HttpRemoteStore
from todosync.adapters.sqlalchemy import SqlAlchemyLocalStore, shutdown, startup
from todosync.config import get_sync_config
from todosync.domain.reconciliation import ReconciliationEngine
from todosync.domain.sync import SyncCoordinator
from todosync.domain.todos import TodoList

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from todosync.config import SyncConfig
    from todosync.domain.ports import RemoteStore
    from todosync.domain.sync import SyncState

log = getLogger(__name__)


@dataclass(slots=True)
class TodoSession:
    """A loaded to-do list together with the database engine backing it."""

    todos: TodoList
    engine: Engine

    @property
    def coordinator(self) -> SyncCoordinator:
        return self.todos.coordinator

    def close(self) -> None:
        shutdown(self.engine)


def build_coordinator(
    *,
    local: SqlAlchemyLocalStore,
    remote: RemoteStore | None = None,
    offline: bool = False,
    sync_config: SyncConfig | None = None,
) -> SyncCoordinator:
    """Wire stores and the reconciliation engine into a coordinator.

    Without ``remote`` an ``HttpRemoteStore`` is built from the environment
    unless ``offline`` is set.
    """

    config = sync_config or get_sync_config()
    effective_remote = None if offline else (remote or HttpRemoteStore())
    return SyncCoordinator(
        local=local,
        remote=effective_remote,
        selection_store=local,
        tombstone_store=local,
        engine=ReconciliationEngine(tie_break=config.tie_break),
        fetch_timeout_seconds=config.fetch_timeout_seconds,
    )


def open_todo_list(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    remote: RemoteStore | None = None,
    offline: bool = False,
    sync_config: SyncConfig | None = None,
) -> TodoSession:
    """Prepare the database, load the persisted list and return it ready for use."""

    config = sync_config or get_sync_config()
    resolved_engine = startup(engine=engine, database_uri=database_uri)
    local = SqlAlchemyLocalStore(resolved_engine, storage_key=config.storage_key)
    coordinator = build_coordinator(
        local=local, remote=remote, offline=offline, sync_config=config
    )
    coordinator.load()
    log.info(
        "Opened to-do list %r (remote %s)",
        config.storage_key,
        "enabled" if coordinator.remote_enabled else "disabled",
    )
    return TodoSession(todos=TodoList(coordinator), engine=resolved_engine)


async def sync_todos(session: TodoSession) -> SyncState:
    """Run one sync and return the resulting state."""

    records = await session.coordinator.sync()
    state = session.coordinator.state
    log.info("Sync finished with %d record(s): %s", len(records), state.describe())
    return state
