"""Observable synchronization state."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .errors import SyncErrorReason

log = getLogger(__name__)


class SyncPhase(StrEnum):
    IDLE = "idle"
    SYNCING = "syncing"
    DEGRADED = "degraded"


@dataclass(frozen=True, slots=True)
class SyncState:
    """Snapshot of the sync status as seen by observers."""

    phase: SyncPhase = SyncPhase.IDLE
    reason: SyncErrorReason | None = None
    last_error: str | None = None
    last_synced_at: datetime | None = None

    @property
    def is_degraded(self) -> bool:
        return self.phase is SyncPhase.DEGRADED

    @property
    def is_syncing(self) -> bool:
        return self.phase is SyncPhase.SYNCING

    def describe(self) -> str:
        if self.phase is SyncPhase.DEGRADED:
            return f"degraded ({self.reason}): {self.last_error}"
        if self.phase is SyncPhase.SYNCING:
            return "syncing"
        return "up to date" if self.last_synced_at else "idle"


type StateListener = Callable[[SyncState], None]


class SyncStateHolder:
    """Single mutable state cell with listeners.

    Only the coordinator owns a holder; everything else gets the read-only
    ``current`` value and ``subscribe``.
    """

    def __init__(self, initial: SyncState | None = None) -> None:
        self._current = initial or SyncState()
        self._listeners: list[StateListener] = []

    @property
    def current(self) -> SyncState:
        return self._current

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set(self, state: SyncState) -> None:
        if state == self._current:
            return
        self._current = state
        log.debug("Sync state -> %s", state.describe())
        for listener in tuple(self._listeners):
            listener(state)
