"""In-process change signal channel."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from todosync.domain.ports.signals import ChangeListener, Unsubscribe

log = getLogger(__name__)


class ChangeFeed:
    """Fan-out of remote-change notifications to subscribed listeners.

    The host calls ``notify`` when a push arrives, the app becomes active or a
    poller sees a new change token.
    """

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        log.debug("Remote change signalled to %d listener(s)", len(self._listeners))
        for listener in tuple(self._listeners):
            listener()

    def __len__(self) -> int:
        return len(self._listeners)
