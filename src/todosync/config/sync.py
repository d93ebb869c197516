"""Synchronization defaults for the to-do list."""

from __future__ import annotations

import os
from dataclasses import dataclass

from todosync.domain.reconciliation.policy import TieBreak

from .env import optional_env_float
from .errors import ConfigurationError

DEFAULT_STORAGE_KEY = "savedTodos"
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    storage_key: str = DEFAULT_STORAGE_KEY
    tie_break: TieBreak = TieBreak.LOCAL
    fetch_timeout_seconds: float | None = DEFAULT_FETCH_TIMEOUT_SECONDS


def _parse_tie_break(value: str | None) -> TieBreak:
    if value is None or not value.strip():
        return TieBreak.LOCAL
    try:
        return TieBreak(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in TieBreak)
        raise ConfigurationError(
            f"TODOSYNC_TIE_BREAK must be one of: {choices} (got {value!r})"
        ) from exc


def get_sync_config() -> SyncConfig:
    storage_key = os.getenv("TODOSYNC_STORAGE_KEY", "").strip() or DEFAULT_STORAGE_KEY
    return SyncConfig(
        storage_key=storage_key,
        tie_break=_parse_tie_break(os.getenv("TODOSYNC_TIE_BREAK")),
        fetch_timeout_seconds=optional_env_float(
            "TODOSYNC_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT_SECONDS
        ),
    )
