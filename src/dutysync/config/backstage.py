"""Backstage catalog configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

BACKSTAGE_TIMEOUT_SECONDS = 15.0
CACHE_TTL_ENV_VAR = "BACKSTAGE_CACHE_TTL_SECONDS"


@dataclass(frozen=True, slots=True)
class BackstageConfig:
    base_url: str
    token: str | None
    resilience: ResilienceConfig


def _cache_from_env() -> CacheConfig | None:
    raw_ttl = optional_env_var(CACHE_TTL_ENV_VAR)
    if raw_ttl is None:
        return None
    try:
        ttl = float(raw_ttl)
    except ValueError as exc:
        raise ConfigurationError(f"{CACHE_TTL_ENV_VAR} must be a number, got {raw_ttl!r}") from exc
    if ttl <= 0:
        return None
    return CacheConfig(backend="sqlite", default_ttl_seconds=ttl)


def get_backstage_config(*, resilience: ResilienceConfig | None = None) -> BackstageConfig:
    values = require_env_vars(("BACKSTAGE_BASE_URL",))
    base_url = values["BACKSTAGE_BASE_URL"].rstrip("/")
    return BackstageConfig(
        base_url=base_url,
        token=optional_env_var("BACKSTAGE_TOKEN"),
        resilience=resilience
        or ResilienceConfig(
            name="backstage",
            base_url=base_url,
            timeout_seconds=BACKSTAGE_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
            cache=_cache_from_env(),
        ),
    )
