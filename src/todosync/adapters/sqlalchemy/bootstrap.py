"""Engine setup for the SQLAlchemy adapter."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine

from todosync.config import get_database_config

from .migrations import upgrade_head

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


def startup(*, engine: Engine | None = None, database_uri: str | None = None) -> Engine:
    """Create (or reuse) an engine and upgrade its schema to the latest revision."""

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    upgrade_head(engine=resolved_engine)
    log.debug("Database ready at %s", resolved_engine.url.render_as_string(hide_password=True))
    return resolved_engine


def shutdown(engine: Engine) -> None:
    engine.dispose()
