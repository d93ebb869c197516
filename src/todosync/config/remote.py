"""Remote record store configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

REMOTE_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class RemoteConfig:
    """Holds remote record store configuration values."""

    base_url: str
    api_token: str
    resilience: ResilienceConfig


def default_resilience_config(base_url: str | None = None) -> ResilienceConfig:
    return ResilienceConfig(
        name="todosync-remote",
        base_url=base_url,
        timeout_seconds=REMOTE_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={"Accept": "application/json"},
    )


def get_remote_config(*, resilience: ResilienceConfig | None = None) -> RemoteConfig:
    values = require_env_vars(("TODOSYNC_REMOTE_URL", "TODOSYNC_API_TOKEN"))
    base_url = values["TODOSYNC_REMOTE_URL"].rstrip("/")
    return RemoteConfig(
        base_url=base_url,
        api_token=values["TODOSYNC_API_TOKEN"],
        resilience=resilience or default_resilience_config(base_url),
    )
