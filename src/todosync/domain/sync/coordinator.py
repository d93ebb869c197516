"""Coordinator owning the local collection and driving reconciliation.

All methods are meant to run on one event loop. Local mutations happen before
the first suspension point of each operation, and a sync reads the local
collection only after its fetch has completed, so a merge never sees a
half-applied edit and never discards an edit made while the fetch was in flight.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from todosync.domain.model import deduplicate, find, upsert, utcnow, without
from todosync.domain.reconciliation import ReconciliationEngine

from .errors import SyncErrorReason, classify_error
from .state import SyncPhase, SyncState, SyncStateHolder

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from todosync.domain.model import Collection, Record
    from todosync.domain.ports import (
        ChangeSignal,
        LocalStore,
        RemoteFetchResult,
        RemoteStore,
        SelectionStore,
        TombstoneStore,
        Unsubscribe,
    )

    from .state import StateListener

log = getLogger(__name__)


class SyncCoordinator:
    """Synchronise a locally persisted collection with a remote store.

    ``remote=None`` runs in local-only mode: mutations are persisted and sync
    returns the local collection untouched.
    """

    def __init__(
        self,
        *,
        local: LocalStore,
        remote: RemoteStore | None = None,
        selection_store: SelectionStore | None = None,
        tombstone_store: TombstoneStore | None = None,
        engine: ReconciliationEngine | None = None,
        fetch_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._local = local
        self._remote = remote
        self._selection_store = selection_store
        self._tombstone_store = tombstone_store
        self._engine = engine or ReconciliationEngine()
        self._fetch_timeout = fetch_timeout_seconds
        self._clock = clock

        self._records: Collection = ()
        self._selected_id: UUID | None = None
        self._state = SyncStateHolder()
        self._remote_disabled = False
        self._tombstones: set[UUID] = set()

        self._lock = asyncio.Lock()
        self._requested = 0
        self._covered = 0
        self._background: set[asyncio.Task[Collection]] = set()

    # ----- observation -------------------------------------------------------

    @property
    def records(self) -> Collection:
        return self._records

    @property
    def selection(self) -> Record | None:
        if self._selected_id is None:
            return None
        return find(self._records, self._selected_id)

    @property
    def state(self) -> SyncState:
        return self._state.current

    @property
    def remote_enabled(self) -> bool:
        return self._remote is not None and not self._remote_disabled

    def observe(self, listener: StateListener) -> Unsubscribe:
        """Call ``listener`` with every new sync state; returns an unsubscribe callable."""
        return self._state.subscribe(listener)

    # ----- startup -----------------------------------------------------------

    def load(self) -> Collection:
        """Read the persisted collection, selection and pending deletes."""

        records, repeated = deduplicate(self._local.load())
        if repeated:
            log.warning("Dropped %d duplicate local record(s): %s", len(repeated), repeated)
        self._records = records

        selected = self._selection_store.load_selection() if self._selection_store else None
        if selected is not None and find(records, selected) is None:
            log.debug("Persisted selection %s no longer exists", selected)
            self._set_selection(None)
        else:
            self._selected_id = selected

        if self._tombstone_store is not None:
            self._tombstones = set(self._tombstone_store.load_tombstones())

        log.info(
            "Loaded %d local record(s), %d pending remote delete(s)",
            len(records),
            len(self._tombstones),
        )
        return records

    # ----- sync --------------------------------------------------------------

    async def sync(self) -> Collection:
        """Fetch the remote collection and merge it into the local one.

        Overlapping calls are coalesced: a call waiting behind a running sync
        returns without fetching again if a sync started after it was requested.
        Fetch failures leave the local collection untouched and degrade the state.
        """

        self._requested += 1
        ticket = self._requested
        async with self._lock:
            if self._covered >= ticket:
                log.debug("Sync request %d already covered", ticket)
                return self._records
            self._covered = self._requested
            return await self._run_sync()

    async def on_remote_change_signal(self) -> Collection:
        return await self.sync()

    async def on_reconnect(self) -> Collection:
        """Retry after connectivity returns, unless the last failure needs user action."""

        state = self.state
        if state.is_degraded and state.reason is not None and not state.reason.retry_on_signal:
            log.info("Not retrying sync after reconnect: %s", state.reason)
            return self._records
        return await self.sync()

    def attach(self, signal: ChangeSignal) -> Unsubscribe:
        """Schedule a sync on the running loop whenever ``signal`` fires."""

        def on_signal() -> None:
            self.schedule_sync()

        return signal.subscribe(on_signal)

    def schedule_sync(self) -> asyncio.Task[Collection]:
        task = asyncio.get_running_loop().create_task(self.on_remote_change_signal())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    async def wait_idle(self) -> None:
        """Wait for every scheduled background sync to finish."""
        while self._background:
            await asyncio.gather(*tuple(self._background), return_exceptions=True)

    async def _run_sync(self) -> Collection:
        if self._remote is None:
            log.info("No remote store configured; keeping local collection")
            return self._records

        self._transition(SyncPhase.SYNCING)
        try:
            result = await self._fetch(self._remote)
        except Exception as exc:  # noqa: BLE001
            self._record_failure("fetch", exc)
            return self._records

        self._remote_disabled = False
        fetched, repeated = deduplicate(result.records)
        if repeated:
            log.warning("Remote returned duplicate id(s), kept first: %s", repeated)

        # no suspension between reading local state and persisting the merge
        pending_deletes = tuple(record for record in fetched if record.id in self._tombstones)
        remote_records = tuple(record for record in fetched if record.id not in self._tombstones)
        merged, report = self._engine.merge_with_report(self._records, remote_records)
        try:
            self._write_local(merged)
            if not result.skipped:
                # ids the remote no longer returns need no further delete
                self._drop_tombstones(self._tombstones - {record.id for record in fetched})
        except Exception as exc:
            self._record_failure("persist", exc, reason=SyncErrorReason.UNKNOWN)
            raise
        self._reconcile_selection()

        synced_at = self._clock()
        if result.skipped:
            log.warning(
                "Skipped %d undecodable remote record(s): %s",
                len(result.skipped),
                ", ".join(f"{item.reference} ({item.reason})" for item in result.skipped),
            )
            self._state.set(
                SyncState(
                    phase=SyncPhase.DEGRADED,
                    reason=SyncErrorReason.RECORD_INVALID,
                    last_error=f"{len(result.skipped)} remote record(s) could not be decoded",
                    last_synced_at=synced_at,
                )
            )
        else:
            self._state.set(SyncState(phase=SyncPhase.IDLE, last_synced_at=synced_at))

        log.info(
            "Sync finished: records=%d, kept_local=%d, taken_remote=%d, remote_only=%d, "
            "local_only=%d",
            len(merged),
            report.kept_local,
            report.taken_remote,
            report.remote_only,
            report.local_only,
        )

        for record in pending_deletes:
            if not self.remote_enabled:
                break
            log.info("Retrying remote delete of %s", record.id)
            await self._delete_remote(self._remote, record)
        return merged

    async def _fetch(self, remote: RemoteStore) -> RemoteFetchResult:
        if self._fetch_timeout is None:
            return await remote.fetch_all()
        async with asyncio.timeout(self._fetch_timeout):
            return await remote.fetch_all()

    # ----- mutations ---------------------------------------------------------

    async def save(self, record: Record) -> Record:
        """Write ``record`` locally, then push it to the remote store.

        The local write is kept whatever happens remotely. Returns the record as
        it is held locally afterwards.
        """

        self._write_local(upsert(self._records, record))
        if self._remote is None or not self.remote_enabled:
            log.debug("Remote disabled, saved %s locally only", record.id)
            return record

        try:
            stored = await self._remote.save(record)
        except Exception as exc:  # noqa: BLE001
            self._record_failure("save", exc)
            return record

        current = find(self._records, record.id)
        if current is None or record.id in self._tombstones:
            # deleted while the save was in flight
            await self._delete_remote(self._remote, stored)
            return stored

        updated = stored if current == record else current.with_remote_handle(stored.remote_handle)
        self._write_local(upsert(self._records, updated))
        return updated

    async def delete(self, record_id: UUID) -> bool:
        """Remove a record locally and, best effort, remotely.

        The local removal is never rolled back. The id is persisted as a pending
        remote delete until the remote copy is gone, so later syncs neither bring
        the record back nor forget to retry a failed remote delete. Returns
        ``False`` for an unknown id.
        """

        record = find(self._records, record_id)
        if record is None:
            return False

        self._write_local(without(self._records, record_id))
        self._set_tombstones(self._tombstones | {record_id})
        if self._selected_id == record_id:
            self._set_selection(None)

        if not record.is_synced:
            log.debug("Record %s was never synced; no remote delete needed", record_id)
            return True
        if self._remote is None or not self.remote_enabled:
            log.debug("Remote disabled, deleted %s locally only", record_id)
            return True

        await self._delete_remote(self._remote, record)
        return True

    async def _delete_remote(self, remote: RemoteStore, record: Record) -> None:
        try:
            await remote.delete(record)
        except Exception as exc:  # noqa: BLE001
            self._record_failure("delete", exc)
            return
        self._drop_tombstones({record.id})

    def select(self, record_id: UUID | None) -> Record | None:
        """Select the record with ``record_id`` (``None`` clears the selection)."""

        if record_id is None:
            self._set_selection(None)
            return None
        record = find(self._records, record_id)
        if record is None:
            raise KeyError(f"Unknown record id: {record_id}")
        self._set_selection(record_id)
        return record

    # ----- internals ---------------------------------------------------------

    def _write_local(self, records: Collection) -> None:
        self._local.persist(records)
        self._records = records

    def _set_tombstones(self, record_ids: set[UUID]) -> None:
        if self._tombstone_store is not None:
            self._tombstone_store.persist_tombstones(frozenset(record_ids))
        self._tombstones = record_ids

    def _drop_tombstones(self, record_ids: set[UUID]) -> None:
        if self._tombstones & record_ids:
            self._set_tombstones(self._tombstones - record_ids)

    def _set_selection(self, record_id: UUID | None) -> None:
        self._selected_id = record_id
        if self._selection_store is not None:
            self._selection_store.persist_selection(record_id)

    def _reconcile_selection(self) -> None:
        if self._selected_id is not None and find(self._records, self._selected_id) is None:
            log.info("Selected record %s disappeared during sync", self._selected_id)
            self._set_selection(None)

    def _transition(self, phase: SyncPhase) -> None:
        current = self._state.current
        self._state.set(
            SyncState(
                phase=phase,
                last_error=current.last_error,
                last_synced_at=current.last_synced_at,
            )
        )

    def _record_failure(
        self,
        operation: str,
        error: Exception,
        *,
        reason: SyncErrorReason | None = None,
    ) -> None:
        reason = reason or classify_error(error)
        if reason.disables_remote:
            self._remote_disabled = True
        log.warning(
            "Sync %s failed (%s): %s",
            operation,
            reason,
            error,
            exc_info=reason is SyncErrorReason.UNKNOWN,
        )
        self._state.set(
            SyncState(
                phase=SyncPhase.DEGRADED,
                reason=reason,
                last_error=f"{operation} failed: {error}",
                last_synced_at=self._state.current.last_synced_at,
            )
        )

    def _on_background_done(self, task: asyncio.Task[Collection]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log.error("Background sync failed", exc_info=error)
