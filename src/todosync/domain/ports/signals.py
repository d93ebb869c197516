"""Port for inbound remote-change notifications."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

type ChangeListener = Callable[[], None]
type Unsubscribe = Callable[[], None]


@runtime_checkable
class ChangeSignal(Protocol):
    """Channel on which the host reports out-of-band remote changes."""

    def subscribe(self, listener: ChangeListener) -> Unsubscribe: ...
