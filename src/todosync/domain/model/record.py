"""Versioned records: the unit of synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


def new_id() -> UUID:
    return uuid4()


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    return None if value is None else as_utc(value)


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """A single synchronizable item.

    Attributes:
        id: stable identifier, assigned at creation and used as the merge key
        payload: the mutable fields of the item (for to-dos: title, is_completed)
        modified_at: time of the last mutation; ``None`` means unknown recency
        remote_handle: reference assigned by the remote store once the record has
            been stored there; ``None`` means never synced
    """

    id: UUID = field(default_factory=new_id)
    payload: Mapping[str, object] = field(default_factory=dict)
    modified_at: datetime | None = None
    remote_handle: str | None = None

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "payload", dict(self.payload))
        object.__setattr__(self, "modified_at", ensure_utc(self.modified_at))

    @property
    def is_synced(self) -> bool:
        return self.remote_handle is not None

    def touch(self, *, clock: Callable[[], datetime] = utcnow, **changes: object) -> Record:
        """Return a copy with ``changes`` applied to the payload and a bumped timestamp.

        The new timestamp never moves backwards relative to the current one, even
        if the wall clock does.
        """

        now = as_utc(clock())
        if self.modified_at is not None and now < self.modified_at:
            now = self.modified_at
        return replace(self, payload={**self.payload, **changes}, modified_at=now)

    def with_remote_handle(self, handle: str | None) -> Record:
        return replace(self, remote_handle=handle)

    def is_newer_than(self, other: Record) -> bool | None:
        """Strict recency comparison; ``None`` when either timestamp is unknown."""

        if self.modified_at is None or other.modified_at is None:
            return None
        return self.modified_at > other.modified_at
