from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect

from todosync.adapters.sqlalchemy import SqlAlchemyLocalStore, startup
from todosync.domain.model import Record

from tests.support.records import at, make_todo, todo_id

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_migrations_create_store_tables(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"local_records", "local_selection", "local_tombstones", "alembic_version"} <= tables


def test_store_round_trips_records_in_order(sqlite_store: SqlAlchemyLocalStore) -> None:
    records = (
        make_todo(3, "C", minutes=7, handle="h3"),
        make_todo(1, "A", minutes=None, is_completed=True),
        Record(id=todo_id(2), payload={"title": "B", "is_completed": False, "tags": ["x", "y"]}),
    )

    sqlite_store.persist(records)
    loaded = sqlite_store.load()

    assert loaded == records
    assert loaded[0].modified_at == at(7)
    assert loaded[0].modified_at is not None
    assert loaded[0].modified_at.tzinfo is not None


def test_persist_replaces_whole_collection(sqlite_store: SqlAlchemyLocalStore) -> None:
    sqlite_store.persist((make_todo(1, "A"), make_todo(2, "B")))
    sqlite_store.persist((make_todo(2, "B2"),))

    assert [record.payload["title"] for record in sqlite_store.load()] == ["B2"]

    sqlite_store.persist(())

    assert sqlite_store.load() == ()


def test_storage_keys_are_isolated(sqlite_engine: Engine) -> None:
    todos = SqlAlchemyLocalStore(sqlite_engine)
    other = SqlAlchemyLocalStore(sqlite_engine, storage_key="otherList")

    todos.persist((make_todo(1, "A"),))
    todos.persist_selection(todo_id(1))
    other.persist((make_todo(1, "A elsewhere"),))

    assert [record.payload["title"] for record in todos.load()] == ["A"]
    assert [record.payload["title"] for record in other.load()] == ["A elsewhere"]
    assert other.load_selection() is None
    assert todos.load_selection() == todo_id(1)


def test_selection_round_trip(sqlite_store: SqlAlchemyLocalStore) -> None:
    assert sqlite_store.load_selection() is None

    sqlite_store.persist_selection(todo_id(4))
    sqlite_store.persist_selection(todo_id(5))
    assert sqlite_store.load_selection() == todo_id(5)

    sqlite_store.persist_selection(None)
    assert sqlite_store.load_selection() is None


def test_tombstones_round_trip(sqlite_store: SqlAlchemyLocalStore) -> None:
    assert sqlite_store.load_tombstones() == frozenset()

    sqlite_store.persist_tombstones(frozenset({todo_id(1), todo_id(2)}))
    assert sqlite_store.load_tombstones() == {todo_id(1), todo_id(2)}

    sqlite_store.persist_tombstones(frozenset({todo_id(2)}))
    assert sqlite_store.load_tombstones() == {todo_id(2)}

    sqlite_store.persist_tombstones(frozenset())
    assert sqlite_store.load_tombstones() == frozenset()


def test_tombstones_are_isolated_by_storage_key(sqlite_engine: Engine) -> None:
    todos = SqlAlchemyLocalStore(sqlite_engine)
    other = SqlAlchemyLocalStore(sqlite_engine, storage_key="otherList")

    todos.persist_tombstones(frozenset({todo_id(1)}))
    other.persist_tombstones(frozenset({todo_id(1), todo_id(3)}))
    todos.persist_tombstones(frozenset({todo_id(2)}))

    assert todos.load_tombstones() == {todo_id(2)}
    assert other.load_tombstones() == {todo_id(1), todo_id(3)}


def test_startup_is_repeatable(sqlite_engine: Engine) -> None:
    assert startup(engine=sqlite_engine) is sqlite_engine
    assert startup(engine=sqlite_engine) is sqlite_engine
    assert SqlAlchemyLocalStore(sqlite_engine).load() == ()
