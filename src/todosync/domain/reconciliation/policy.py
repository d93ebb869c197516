"""Conflict policy for reconciling a local and a remote copy of the same record.

A conflict is decided by ``modified_at`` when both sides carry one and they
differ. Otherwise recency cannot be proven and the tie-break decides. The
default is ``TieBreak.LOCAL``: the device is assumed to reflect the user's most
recent intent. ``TieBreak.REMOTE`` is available for deployments where the
remote store is authoritative on ties.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from todosync.domain.model import Record


class TieBreak(StrEnum):
    """Which side wins when recency cannot be proven."""

    LOCAL = "local"
    REMOTE = "remote"


class Resolution(StrEnum):
    """Outcome of resolving one id present on both sides."""

    KEEP_LOCAL = "keep_local"
    TAKE_REMOTE = "take_remote"


class ResolveConflict(Protocol):
    """Choose between the local and remote copy of one record."""

    def __call__(self, local: Record, remote: Record) -> Resolution: ...


def last_writer_wins(tie_break: TieBreak = TieBreak.LOCAL) -> ResolveConflict:
    """Return a resolver keeping the strictly newer copy, else ``tie_break``'s side."""

    def resolve(local: Record, remote: Record) -> Resolution:
        remote_is_newer = remote.is_newer_than(local)
        if remote_is_newer:
            return Resolution.TAKE_REMOTE
        if remote_is_newer is not None and local.is_newer_than(remote):
            return Resolution.KEEP_LOCAL
        if tie_break is TieBreak.REMOTE:
            return Resolution.TAKE_REMOTE
        return Resolution.KEEP_LOCAL

    return resolve
