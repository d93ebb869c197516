"""Merge of a local and a remote record collection.

The merge is pure, deterministic and total:

1) walk the remote collection first
2) an id present on both sides is resolved by the conflict policy
3) an id only present remotely is taken as-is
4) the remaining local-only records (offline additions) are appended in local order

Every id of either input appears exactly once in the result. Re-merging the
result with the same remote collection yields the same result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .policy import Resolution, ResolveConflict, TieBreak, last_writer_wins

if TYPE_CHECKING:
    from uuid import UUID

    from todosync.domain.model import Collection, Record


@dataclass(slots=True)
class MergeReport:
    """What the merge did with each id."""

    kept_local: int = 0
    taken_remote: int = 0
    remote_only: int = 0
    local_only: int = 0

    @property
    def total(self) -> int:
        return self.kept_local + self.taken_remote + self.remote_only + self.local_only


def _merge(
    local: Collection,
    remote: Collection,
    resolve: ResolveConflict,
) -> tuple[Collection, MergeReport]:
    report = MergeReport()
    local_only: dict[UUID, Record] = {record.id: record for record in local}
    merged: list[Record] = []

    for remote_record in remote:
        local_record = local_only.pop(remote_record.id, None)
        if local_record is None:
            merged.append(remote_record)
            report.remote_only += 1
            continue
        if resolve(local_record, remote_record) is Resolution.TAKE_REMOTE:
            merged.append(remote_record)
            report.taken_remote += 1
        else:
            merged.append(local_record)
            report.kept_local += 1

    # dicts keep insertion order, so this is local order
    merged.extend(local_only.values())
    report.local_only = len(local_only)
    return tuple(merged), report


def merge_collections(
    local: Collection,
    remote: Collection,
    *,
    tie_break: TieBreak = TieBreak.LOCAL,
) -> Collection:
    """Merge ``local`` and ``remote`` with last-writer-wins resolution."""

    merged, _report = _merge(local, remote, last_writer_wins(tie_break))
    return merged


@dataclass(slots=True)
class ReconciliationEngine:
    """Merge collections with a fixed conflict policy."""

    tie_break: TieBreak = TieBreak.LOCAL
    _resolve: ResolveConflict = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._resolve = last_writer_wins(self.tie_break)

    def merge(self, local: Collection, remote: Collection) -> Collection:
        merged, _report = _merge(local, remote, self._resolve)
        return merged

    def merge_with_report(
        self, local: Collection, remote: Collection
    ) -> tuple[Collection, MergeReport]:
        return _merge(local, remote, self._resolve)
