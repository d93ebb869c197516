"""HTTP implementation of the remote record store port."""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from todosync.adapters.http_resilience import ResilientClient, build_limiter
from todosync.config.remote import RemoteConfig, get_remote_config
from todosync.domain.ports import RemoteFetchResult, RemoteStore
from todosync.domain.sync.errors import (
    NetworkUnavailableError,
    NotAuthenticatedError,
    QuotaExceededError,
    RecordDecodeError,
    RemoteStoreError,
    ServiceBusyError,
)
from todosync.domain.todos import validate_todo_fields

from .schema import ErrorResponse, RecordListResponse
from .translator import FieldValidator, parse_record, parse_records, record_to_payload

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from contextlib import AbstractAsyncContextManager

    from aiolimiter import AsyncLimiter

    from todosync.config.http_resilience import ResilienceConfig
    from todosync.domain.model import Record

log = getLogger(__name__)

_AUTH_STATUSES = frozenset({401, 403})
_QUOTA_STATUSES = frozenset({413, 507})
_BUSY_STATUSES = frozenset({429, 502, 503, 504})
_QUOTA_ERROR_CODES = frozenset({"quota_exceeded", "storage_full"})


type ClientFactory = Callable[[ResilienceConfig, AsyncLimiter | None], ResilientClient]


def _default_client_factory(
    config: ResilienceConfig, limiter: AsyncLimiter | None
) -> ResilientClient:
    return ResilientClient(config, limiter=limiter)


def _error_detail(response: httpx.Response) -> tuple[str | None, str]:
    try:
        error = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return None, response.reason_phrase or f"HTTP {response.status_code}"
    return error.error, error.message or error.error


def _raise_for_status(response: httpx.Response, *, operation: str) -> None:
    """Translate an error response into the matching ``RemoteStoreError``."""

    status = response.status_code
    if status < 400:
        return

    code, detail = _error_detail(response)
    message = f"{operation} failed with HTTP {status}: {detail}"
    if status in _AUTH_STATUSES:
        raise NotAuthenticatedError(message, status_code=status)
    if status in _QUOTA_STATUSES or code in _QUOTA_ERROR_CODES:
        raise QuotaExceededError(message, status_code=status)
    if status in _BUSY_STATUSES:
        raise ServiceBusyError(message, status_code=status)
    raise RemoteStoreError(message, status_code=status)


def _decode_json(response: httpx.Response, *, operation: str) -> object:
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise RecordDecodeError(f"{operation} returned a non-JSON body") from exc


@dataclass(slots=True)
class HttpRemoteStore:
    """Remote store speaking JSON over HTTP.

    ``GET /records`` lists every record, ``PUT /records/{id}`` stores one and
    returns the stored copy, ``DELETE /records/{id}`` removes one. Each call opens
    a fresh client, but all of them share one rate limiter.
    """

    config: RemoteConfig = field(default_factory=get_remote_config)
    client_factory: ClientFactory = field(default=_default_client_factory)
    validate_fields: FieldValidator | None = validate_todo_fields
    limiter: AsyncLimiter | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.limiter = build_limiter(self.config.resilience)

    async def fetch_all(self) -> RemoteFetchResult:
        async with self._client("fetch") as client:
            response = await client.get(self._url("records"), headers=self._auth_headers())
        _raise_for_status(response, operation="fetch")

        body = _decode_json(response, operation="fetch")
        try:
            listing = RecordListResponse.model_validate(body)
        except ValidationError as exc:
            # the listing itself is unusable, not a single entry
            raise RemoteStoreError(f"Unexpected record listing payload: {exc}") from exc

        records, skipped = parse_records(listing.records, validate_fields=self.validate_fields)
        log.debug("Fetched %d remote record(s), skipped %d", len(records), len(skipped))
        return RemoteFetchResult(records=records, skipped=skipped)

    async def save(self, record: Record) -> Record:
        async with self._client("save") as client:
            response = await client.put(
                self._url(f"records/{record.id}"),
                json=record_to_payload(record),
                headers=self._auth_headers(),
            )
        _raise_for_status(response, operation="save")

        stored = parse_record(
            _decode_json(response, operation="save"), validate_fields=self.validate_fields
        )
        if stored.id != record.id:
            raise RecordDecodeError(f"Save of {record.id} returned record {stored.id}")
        if stored.remote_handle is None:
            raise RecordDecodeError(f"Save of {record.id} returned no remote handle")
        return stored

    async def delete(self, record: Record) -> None:
        async with self._client("delete") as client:
            response = await client.delete(
                self._url(f"records/{record.id}"), headers=self._auth_headers()
            )
        if response.status_code == 404:
            log.debug("Record %s already absent remotely", record.id)
            return
        _raise_for_status(response, operation="delete")

    def _url(self, path: str) -> str:
        return f"{self.config.base_url}/{path}"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.api_token}"}

    def _client(self, operation: str) -> AbstractAsyncContextManager[ResilientClient]:
        return _remote_call(
            self.client_factory(self.config.resilience, self.limiter), operation=operation
        )


@asynccontextmanager
async def _remote_call(
    client: ResilientClient, *, operation: str
) -> AsyncIterator[ResilientClient]:
    """Close ``client`` afterwards and map transport failures to network errors."""

    try:
        async with client:
            yield client
    except httpx.TimeoutException as exc:
        raise NetworkUnavailableError(f"{operation} timed out: {exc}") from exc
    except httpx.TransportError as exc:
        raise NetworkUnavailableError(f"{operation} failed: {exc}") from exc


if TYPE_CHECKING:
    _store_check: RemoteStore = HttpRemoteStore()
