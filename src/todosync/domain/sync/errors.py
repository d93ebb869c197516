"""Error taxonomy for synchronization failures.

Every failure the coordinator observes is classified into a
``SyncErrorReason``; the reason is what ``SyncState`` exposes and what the
retry policy looks at. Adapters raise the ``RemoteStoreError`` subclass that
matches the condition so classification does not depend on transport details.
"""

from __future__ import annotations

from enum import StrEnum


class SyncErrorReason(StrEnum):
    NOT_AUTHENTICATED = "not_authenticated"
    NETWORK_UNAVAILABLE = "network_unavailable"
    QUOTA_EXCEEDED = "quota_exceeded"
    SERVICE_BUSY = "service_busy"
    RECORD_INVALID = "record_invalid"
    UNKNOWN = "unknown"

    @property
    def retry_on_signal(self) -> bool:
        """Whether the next reconnect/change signal should retry automatically."""
        return self in _RETRY_ON_SIGNAL

    @property
    def disables_remote(self) -> bool:
        """Whether remote writes are skipped while this reason is active."""
        return self is SyncErrorReason.NOT_AUTHENTICATED


_RETRY_ON_SIGNAL = frozenset(
    {
        SyncErrorReason.NOT_AUTHENTICATED,
        SyncErrorReason.NETWORK_UNAVAILABLE,
        SyncErrorReason.SERVICE_BUSY,
        SyncErrorReason.RECORD_INVALID,
        SyncErrorReason.UNKNOWN,
    }
)


class SyncError(RuntimeError):
    """Base class for synchronization errors."""


class RemoteStoreError(SyncError):
    """Raised by remote store adapters; carries the classified reason."""

    reason: SyncErrorReason = SyncErrorReason.UNKNOWN

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticatedError(RemoteStoreError):
    reason = SyncErrorReason.NOT_AUTHENTICATED


class NetworkUnavailableError(RemoteStoreError):
    reason = SyncErrorReason.NETWORK_UNAVAILABLE


class QuotaExceededError(RemoteStoreError):
    reason = SyncErrorReason.QUOTA_EXCEEDED


class ServiceBusyError(RemoteStoreError):
    reason = SyncErrorReason.SERVICE_BUSY


class RecordDecodeError(RemoteStoreError):
    """A remote entry is missing required fields or has the wrong shape."""

    reason = SyncErrorReason.RECORD_INVALID


def classify_error(error: BaseException) -> SyncErrorReason:
    """Map an exception raised by a remote call to a reason code."""

    if isinstance(error, RemoteStoreError):
        return error.reason
    # TimeoutError and ConnectionError are OSError subclasses
    if isinstance(error, OSError):
        return SyncErrorReason.NETWORK_UNAVAILABLE
    return SyncErrorReason.UNKNOWN
