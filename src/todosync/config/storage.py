"""Location of the local database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "todosync"
DEFAULT_DB_FILENAME: Final[str] = "todosync.db"


def platform_data_home() -> Path:
    """Per-user data directory of the platform (XDG on POSIX, LOCALAPPDATA on Windows)."""

    if os.name == "nt":
        local_app_data = os.getenv("LOCALAPPDATA")
        return Path(local_app_data) if local_app_data else Path.home() / "AppData" / "Local"
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    return Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Where the SQLite file backing the local store lives.

    ``database_uri_override`` replaces the file entirely, e.g. with an
    in-memory database or a server URI.
    """

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME
    database_uri_override: str | None = None

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_filename

    def database_uri(self) -> str:
        if self.database_uri_override:
            return self.database_uri_override
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{self.database_path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv("TODOSYNC_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else platform_data_home() / APP_DIR_NAME
    return StorageConfig(
        data_dir=data_dir.expanduser().resolve(),
        database_uri_override=os.getenv("DATABASE_URI") or None,
    )


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())
