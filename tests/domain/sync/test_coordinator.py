from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from todosync.domain.model import Record, find
from todosync.domain.ports import SkippedRecord
from todosync.domain.reconciliation import ReconciliationEngine, TieBreak
from todosync.domain.sync import (
    ChangeFeed,
    NetworkUnavailableError,
    NotAuthenticatedError,
    QuotaExceededError,
    ServiceBusyError,
    SyncCoordinator,
    SyncErrorReason,
    SyncPhase,
    SyncState,
)

from tests.support.records import T0, StepClock, make_todo, todo_id
from tests.support.stores import FakeRemoteStore, InMemoryLocalStore

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID


def _build(
    local_records: Iterable[Record] = (),
    remote_records: Iterable[Record] = (),
    *,
    selection: UUID | None = None,
    tombstones: Iterable[UUID] = (),
    tie_break: TieBreak = TieBreak.LOCAL,
    fetch_timeout_seconds: float | None = None,
) -> tuple[SyncCoordinator, InMemoryLocalStore, FakeRemoteStore]:
    local = InMemoryLocalStore(local_records, selection=selection, tombstones=tombstones)
    remote = FakeRemoteStore(remote_records)
    coordinator = SyncCoordinator(
        local=local,
        remote=remote,
        selection_store=local,
        tombstone_store=local,
        engine=ReconciliationEngine(tie_break=tie_break),
        fetch_timeout_seconds=fetch_timeout_seconds,
        clock=StepClock(),
    )
    coordinator.load()
    return coordinator, local, remote


def test_sync_merges_and_persists_remote_changes() -> None:
    local_records = (make_todo(1, "A", minutes=0, handle="h1"),)
    remote_records = (make_todo(1, "A-edited", minutes=1, handle="h1"), make_todo(2, "B"))
    coordinator, local, _remote = _build(local_records, remote_records)

    merged = asyncio.run(coordinator.sync())

    assert [record.payload["title"] for record in merged] == ["A-edited", "B"]
    assert local.records == merged
    assert coordinator.records == merged
    assert coordinator.state.phase is SyncPhase.IDLE
    assert coordinator.state.last_synced_at is not None


def test_fetch_failure_returns_local_unchanged_and_degrades() -> None:
    local_records = (make_todo(1, "A"), make_todo(2, "B"))
    coordinator, local, remote = _build(local_records, (make_todo(3, "C"),))
    remote.fetch_error = NetworkUnavailableError("offline")

    result = asyncio.run(coordinator.sync())

    assert result == local_records
    assert local.records == local_records
    assert local.persist_calls == 0
    assert coordinator.state.phase is SyncPhase.DEGRADED
    assert coordinator.state.reason is SyncErrorReason.NETWORK_UNAVAILABLE


def test_fetch_timeout_is_a_network_failure() -> None:
    coordinator, _local, remote = _build((make_todo(1, "A"),), fetch_timeout_seconds=0.01)

    async def scenario() -> None:
        remote.fetch_gate = asyncio.Event()
        await coordinator.sync()

    asyncio.run(scenario())

    assert coordinator.state.reason is SyncErrorReason.NETWORK_UNAVAILABLE


def test_unexpected_fetch_error_is_classified_unknown() -> None:
    coordinator, _local, remote = _build((make_todo(1, "A"),))
    remote.fetch_error = ValueError("boom")

    asyncio.run(coordinator.sync())

    assert coordinator.state.reason is SyncErrorReason.UNKNOWN
    assert coordinator.state.last_error is not None
    assert "boom" in coordinator.state.last_error


def test_failed_save_keeps_record_locally_and_in_later_syncs() -> None:
    coordinator, local, remote = _build()
    remote.save_error = ServiceBusyError("try later", status_code=503)
    record = make_todo(7, "offline edit")

    async def scenario() -> tuple[Record, ...]:
        saved = await coordinator.save(record)
        assert saved == record
        assert find(local.records, record.id) == record
        assert coordinator.state.reason is SyncErrorReason.SERVICE_BUSY
        remote.save_error = None
        return await coordinator.sync()

    merged = asyncio.run(scenario())

    assert find(merged, record.id) == record
    assert coordinator.state.phase is SyncPhase.IDLE


def test_successful_save_stores_remote_handle() -> None:
    coordinator, local, remote = _build()
    record = make_todo(1, "A")

    stored = asyncio.run(coordinator.save(record))

    assert stored.remote_handle == "handle-1"
    assert find(local.records, record.id) == stored
    assert remote.records[record.id] == stored


def test_save_made_during_fetch_survives_merge() -> None:
    original = make_todo(1, "A", minutes=0, handle="h1")
    coordinator, local, remote = _build((original,), (original,))

    async def scenario() -> tuple[Record, ...]:
        remote.fetch_gate = asyncio.Event()
        remote.fetch_started = asyncio.Event()
        sync_task = asyncio.create_task(coordinator.sync())
        await remote.fetch_started.wait()

        await coordinator.save(original.touch(clock=lambda: T0.replace(minute=5), title="A2"))
        await coordinator.save(make_todo(2, "added while syncing", minutes=6))

        remote.fetch_gate.set()
        return await sync_task

    merged = asyncio.run(scenario())

    titles = {record.id: record.payload["title"] for record in merged}
    assert titles == {todo_id(1): "A2", todo_id(2): "added while syncing"}
    assert local.records == merged


def test_save_completing_after_local_delete_removes_remote_copy() -> None:
    coordinator, local, remote = _build()
    record = make_todo(1, "A")

    async def scenario() -> Record:
        remote.save_gate = asyncio.Event()
        remote.save_started = asyncio.Event()
        save_task = asyncio.create_task(coordinator.save(record))
        await remote.save_started.wait()

        assert await coordinator.delete(record.id) is True
        assert remote.deleted == []

        remote.save_gate.set()
        return await save_task

    stored = asyncio.run(scenario())

    assert stored.remote_handle == "handle-1"
    assert remote.deleted == [record.id]
    assert record.id not in remote.records
    assert local.records == ()
    assert local.tombstones == frozenset()


def test_save_completing_after_newer_edit_only_stamps_handle() -> None:
    coordinator, local, remote = _build()
    original = make_todo(1, "A", minutes=0)
    newer = original.touch(clock=lambda: T0.replace(minute=5), title="A2")

    async def scenario() -> Record:
        remote.save_gate = asyncio.Event()
        remote.save_started = asyncio.Event()
        first = asyncio.create_task(coordinator.save(original))
        await remote.save_started.wait()

        second = asyncio.create_task(coordinator.save(newer))
        await asyncio.sleep(0)
        assert find(local.records, original.id) == newer

        remote.save_gate.set()
        result = await first
        await second
        return result

    first_result = asyncio.run(scenario())

    assert first_result == newer.with_remote_handle("handle-1")
    current = find(local.records, original.id)
    assert current is not None
    assert current.payload["title"] == "A2"
    assert current.modified_at == newer.modified_at
    assert current.remote_handle is not None


def test_overlapping_syncs_are_coalesced() -> None:
    coordinator, local, remote = _build((make_todo(1, "A"),), (make_todo(2, "B"),))

    async def scenario() -> list[tuple[Record, ...]]:
        remote.fetch_gate = asyncio.Event()
        remote.fetch_started = asyncio.Event()
        first = asyncio.create_task(coordinator.sync())
        await remote.fetch_started.wait()
        second = asyncio.create_task(coordinator.sync())
        third = asyncio.create_task(coordinator.sync())
        await asyncio.sleep(0)
        remote.fetch_gate.set()
        return list(await asyncio.gather(first, second, third))

    results = asyncio.run(scenario())

    assert remote.fetch_calls == 2
    assert local.persist_calls == 2
    assert all(result == results[0] for result in results)


def test_delete_is_not_undone_by_later_sync_when_remote_delete_fails() -> None:
    record = make_todo(1, "A", handle="h1")
    other = make_todo(2, "B", handle="h2")
    coordinator, local, remote = _build((record, other), (record, other))
    remote.delete_error = ServiceBusyError("busy", status_code=503)

    async def scenario() -> tuple[Record, ...]:
        assert await coordinator.delete(record.id) is True
        assert coordinator.state.reason is SyncErrorReason.SERVICE_BUSY
        return await coordinator.sync()

    merged = asyncio.run(scenario())

    # the sync still sees the record remotely and issues the delete again
    assert remote.deleted == [record.id, record.id]
    assert [item.id for item in merged] == [todo_id(2)]
    assert find(local.records, record.id) is None
    assert local.tombstones == {record.id}
    assert coordinator.state.reason is SyncErrorReason.SERVICE_BUSY


def test_pending_delete_survives_restart_and_is_retried_by_next_sync() -> None:
    record = make_todo(1, "A", handle="h1")
    other = make_todo(2, "B", handle="h2")
    local = InMemoryLocalStore((record, other))
    remote = FakeRemoteStore((record, other))
    remote.delete_error = ServiceBusyError("busy", status_code=503)

    first = SyncCoordinator(local=local, remote=remote, tombstone_store=local, clock=StepClock())
    first.load()
    asyncio.run(first.delete(record.id))
    assert local.tombstones == {record.id}

    remote.delete_error = None
    second = SyncCoordinator(local=local, remote=remote, tombstone_store=local, clock=StepClock())
    second.load()
    merged = asyncio.run(second.sync())

    assert [item.id for item in merged] == [todo_id(2)]
    assert remote.deleted == [record.id, record.id]
    assert record.id not in remote.records
    assert local.tombstones == frozenset()
    assert second.state.phase is SyncPhase.IDLE


def test_successful_remote_delete_forgets_tombstone() -> None:
    record = make_todo(1, "A", handle="h1")
    coordinator, local, remote = _build((record,), (record,))

    asyncio.run(coordinator.delete(record.id))

    assert remote.deleted == [record.id]
    assert local.tombstones == frozenset()


def test_tombstone_is_forgotten_once_remote_no_longer_returns_record() -> None:
    coordinator, local, remote = _build(
        (make_todo(2, "B"),), (make_todo(2, "B"),), tombstones=(todo_id(1),)
    )

    asyncio.run(coordinator.sync())

    assert remote.deleted == []
    assert local.tombstones == frozenset()


def test_tombstone_is_kept_while_remote_entries_are_undecodable() -> None:
    coordinator, local, remote = _build((), (), tombstones=(todo_id(1),))
    remote.skipped = [SkippedRecord(reference=str(todo_id(1)), reason="missing title")]

    asyncio.run(coordinator.sync())

    assert local.tombstones == {todo_id(1)}


def test_delete_of_unsynced_record_skips_remote() -> None:
    coordinator, local, remote = _build((make_todo(1, "A"),))

    assert asyncio.run(coordinator.delete(todo_id(1))) is True

    assert remote.deleted == []
    assert local.records == ()


def test_delete_unknown_id_is_a_noop() -> None:
    coordinator, local, _remote = _build((make_todo(1, "A"),))

    assert asyncio.run(coordinator.delete(todo_id(99))) is False
    assert local.persist_calls == 0


def test_deleting_selected_record_clears_selection() -> None:
    coordinator, local, _remote = _build((make_todo(1, "A"), make_todo(2, "B")))
    coordinator.select(todo_id(1))

    asyncio.run(coordinator.delete(todo_id(1)))

    assert coordinator.selection is None
    assert local.selection is None


def test_stale_persisted_selection_is_cleared_on_load() -> None:
    coordinator, local, _remote = _build((make_todo(1, "A"),), selection=todo_id(5))

    assert coordinator.selection is None
    assert local.selection is None


def test_selection_follows_merged_instance() -> None:
    coordinator, _local, _remote = _build(
        (make_todo(1, "A", minutes=0),), (make_todo(1, "A-remote", minutes=3),)
    )
    coordinator.select(todo_id(1))

    asyncio.run(coordinator.sync())

    selection = coordinator.selection
    assert selection is not None
    assert selection.payload["title"] == "A-remote"


def test_select_unknown_id_raises() -> None:
    coordinator, _local, _remote = _build()

    with pytest.raises(KeyError):
        coordinator.select(todo_id(1))


def test_not_authenticated_suspends_remote_writes_until_sync_succeeds() -> None:
    coordinator, _local, remote = _build()
    remote.fetch_error = NotAuthenticatedError("sign in", status_code=401)

    async def scenario() -> None:
        await coordinator.sync()
        assert not coordinator.remote_enabled
        await coordinator.save(make_todo(1, "A"))
        assert remote.saved == []

        remote.fetch_error = None
        await coordinator.sync()
        assert coordinator.remote_enabled
        await coordinator.save(make_todo(2, "B"))

    asyncio.run(scenario())

    assert [record.id for record in remote.saved] == [todo_id(2)]


def test_invalid_remote_entries_are_skipped_and_reported() -> None:
    coordinator, _local, remote = _build((), (make_todo(1, "A"),))
    remote.skipped = [SkippedRecord(reference="entry-2", reason="missing title")]

    merged = asyncio.run(coordinator.sync())

    assert [record.id for record in merged] == [todo_id(1)]
    assert coordinator.state.phase is SyncPhase.DEGRADED
    assert coordinator.state.reason is SyncErrorReason.RECORD_INVALID
    assert coordinator.state.last_synced_at is not None


def test_reconnect_does_not_retry_after_quota_exceeded() -> None:
    coordinator, _local, remote = _build()
    remote.fetch_error = QuotaExceededError("full", status_code=507)

    async def scenario() -> None:
        await coordinator.sync()
        remote.fetch_error = None
        await coordinator.on_reconnect()

    asyncio.run(scenario())

    assert remote.fetch_calls == 1
    assert coordinator.state.reason is SyncErrorReason.QUOTA_EXCEEDED


def test_reconnect_retries_after_network_failure() -> None:
    coordinator, _local, remote = _build()
    remote.fetch_error = NetworkUnavailableError("offline")

    async def scenario() -> None:
        await coordinator.sync()
        remote.fetch_error = None
        await coordinator.on_reconnect()

    asyncio.run(scenario())

    assert remote.fetch_calls == 2
    assert coordinator.state.phase is SyncPhase.IDLE


def test_reconnect_retries_after_partial_sync() -> None:
    coordinator, _local, remote = _build((), (make_todo(1, "A"),))
    remote.skipped = [SkippedRecord(reference="entry-2", reason="missing title")]

    async def scenario() -> None:
        await coordinator.sync()
        assert coordinator.state.reason is SyncErrorReason.RECORD_INVALID
        remote.skipped = []
        await coordinator.on_reconnect()

    asyncio.run(scenario())

    assert remote.fetch_calls == 2
    assert coordinator.state.phase is SyncPhase.IDLE


def test_remote_change_signal_runs_sync() -> None:
    coordinator, _local, remote = _build((), (make_todo(1, "A"),))

    merged = asyncio.run(coordinator.on_remote_change_signal())

    assert remote.fetch_calls == 1
    assert [record.id for record in merged] == [todo_id(1)]


def test_attached_change_feed_schedules_sync() -> None:
    coordinator, _local, remote = _build((), (make_todo(1, "A"),))
    feed = ChangeFeed()

    async def scenario() -> None:
        unsubscribe = coordinator.attach(feed)
        feed.notify()
        await coordinator.wait_idle()
        unsubscribe()
        assert len(feed) == 0

    asyncio.run(scenario())

    assert remote.fetch_calls == 1
    assert [record.id for record in coordinator.records] == [todo_id(1)]


def test_observers_see_state_transitions() -> None:
    coordinator, _local, _remote = _build((), (make_todo(1, "A"),))
    seen: list[SyncState] = []
    unsubscribe = coordinator.observe(seen.append)

    asyncio.run(coordinator.sync())
    unsubscribe()

    assert [state.phase for state in seen] == [SyncPhase.SYNCING, SyncPhase.IDLE]


def test_local_only_mode_never_syncs() -> None:
    records = (make_todo(1, "A"),)
    local = InMemoryLocalStore(records)
    coordinator = SyncCoordinator(local=local)
    coordinator.load()

    assert asyncio.run(coordinator.sync()) == records
    assert coordinator.state == SyncState()
    assert not coordinator.remote_enabled


def test_local_persist_failure_is_raised_and_reported() -> None:
    coordinator, local, _remote = _build((), (make_todo(1, "A"),))
    local.persist_error = RuntimeError("disk full")

    with pytest.raises(RuntimeError, match="disk full"):
        asyncio.run(coordinator.sync())

    assert coordinator.state.reason is SyncErrorReason.UNKNOWN
    assert coordinator.records == ()


def test_local_os_error_is_reported_as_unknown_not_network() -> None:
    coordinator, local, _remote = _build((), (make_todo(1, "A"),))
    local.persist_error = PermissionError("read-only database")

    with pytest.raises(PermissionError):
        asyncio.run(coordinator.sync())

    assert coordinator.state.reason is SyncErrorReason.UNKNOWN
    assert coordinator.state.last_error == "persist failed: read-only database"


def test_load_drops_duplicate_local_ids() -> None:
    first = make_todo(1, "first")
    coordinator, _local, _remote = _build((first, make_todo(1, "second"), make_todo(2, "B")))

    assert [record.payload["title"] for record in coordinator.records] == ["first", "B"]
