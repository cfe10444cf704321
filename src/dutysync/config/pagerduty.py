"""PagerDuty account configuration.

Two shapes are accepted. The legacy shape configures a single account directly
under ``[pagerduty]``::

    [pagerduty]
    api_token = "..."            # or:
    [pagerduty.oauth]
    client_id = "..."
    client_secret = "..."
    sub_domain = "acme"
    region = "eu"                # optional, defaults to "us"

The multi-account shape lists accounts, each shaped like the legacy block plus an
``id`` and an optional ``is_default`` flag::

    [[pagerduty.accounts]]
    id = "ops"
    is_default = true
    api_token = "..."
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final, cast

from .env import optional_env_var
from .errors import ConfigurationError
from .http_resilience import NO_RETRY, RateLimit, ResilienceConfig, RetryPolicy

CONFIG_FILE_ENV_VAR: Final[str] = "DUTYSYNC_CONFIG_FILE"

DEFAULT_ACCOUNT_ID: Final[str] = "default"
DEFAULT_REGION: Final[str] = "us"

PAGERDUTY_API_BASE_URL: Final[str] = "https://api.pagerduty.com"
PAGERDUTY_EU_API_BASE_URL: Final[str] = "https://api.eu.pagerduty.com"
PAGERDUTY_IDENTITY_URL: Final[str] = "https://identity.pagerduty.com/oauth/token"

PAGERDUTY_TIMEOUT_SECONDS: Final[float] = 30.0
IDENTITY_TIMEOUT_SECONDS: Final[float] = 10.0

type ConfigMapping = Mapping[str, object]


@dataclass(frozen=True, slots=True)
class OAuthConfig:
    client_id: str = ""
    client_secret: str = ""
    sub_domain: str = ""
    region: str = DEFAULT_REGION

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id and self.client_secret and self.sub_domain)


@dataclass(frozen=True, slots=True)
class AccountConfig:
    """Credentials for one PagerDuty account."""

    id: str = DEFAULT_ACCOUNT_ID
    api_token: str | None = None
    oauth: OAuthConfig | None = None
    is_default: bool = False
    api_base_url: str | None = None

    def resolve_api_base_url(self) -> str:
        if self.api_base_url:
            return self.api_base_url.rstrip("/")
        if self.oauth is not None and self.oauth.region.lower() == "eu":
            return PAGERDUTY_EU_API_BASE_URL
        return PAGERDUTY_API_BASE_URL


@dataclass(frozen=True, slots=True)
class PagerDutyConfig:
    """Either a single legacy account or an explicit account list."""

    legacy_account: AccountConfig | None = None
    accounts: tuple[AccountConfig, ...] | None = None

    @property
    def is_multi_account(self) -> bool:
        return self.accounts is not None

    def iter_accounts(self) -> tuple[AccountConfig, ...]:
        if self.accounts is not None:
            return self.accounts
        if self.legacy_account is not None:
            return (self.legacy_account,)
        return ()

    def account(self, account_id: str | None) -> AccountConfig | None:
        accounts = self.iter_accounts()
        if not self.is_multi_account:
            return accounts[0] if accounts else None
        for account in accounts:
            if account.id == account_id:
                return account
        return None


def default_api_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="pagerduty",
        timeout_seconds=PAGERDUTY_TIMEOUT_SECONDS,
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=15, per_seconds=1.0),
        default_headers={"Accept": "application/vnd.pagerduty+json;version=2"},
    )


def default_identity_resilience() -> ResilienceConfig:
    return ResilienceConfig(
        name="pagerduty-identity",
        base_url=PAGERDUTY_IDENTITY_URL,
        timeout_seconds=IDENTITY_TIMEOUT_SECONDS,
        retry=NO_RETRY,
    )


def parse_pagerduty_config(section: ConfigMapping) -> PagerDutyConfig:
    """Build a :class:`PagerDutyConfig` from the ``[pagerduty]`` table."""

    raw_accounts = section.get("accounts")
    if raw_accounts is None:
        return PagerDutyConfig(legacy_account=_parse_account(section, legacy=True))

    if not isinstance(raw_accounts, list):
        raise ConfigurationError("pagerduty.accounts must be a list of tables")

    accounts: list[AccountConfig] = []
    seen: set[str] = set()
    for index, raw_account in enumerate(cast(list[object], raw_accounts)):
        if not isinstance(raw_account, Mapping):
            raise ConfigurationError(f"pagerduty.accounts[{index}] must be a table")
        account = _parse_account(cast(ConfigMapping, raw_account), legacy=False)
        if account.id in seen:
            raise ConfigurationError(f"Duplicate PagerDuty account id: {account.id}")
        seen.add(account.id)
        accounts.append(account)
    return PagerDutyConfig(accounts=tuple(accounts))


def _parse_account(section: ConfigMapping, *, legacy: bool) -> AccountConfig:
    account_id = DEFAULT_ACCOUNT_ID
    if not legacy:
        account_id = _optional_str(section, "id") or ""
        if not account_id:
            raise ConfigurationError("Every entry in pagerduty.accounts requires an 'id'")

    oauth: OAuthConfig | None = None
    raw_oauth = section.get("oauth")
    if raw_oauth is not None:
        if not isinstance(raw_oauth, Mapping):
            raise ConfigurationError(f"pagerduty oauth block for '{account_id}' must be a table")
        oauth_section = cast(ConfigMapping, raw_oauth)
        oauth = OAuthConfig(
            client_id=_optional_str(oauth_section, "client_id") or "",
            client_secret=_optional_str(oauth_section, "client_secret") or "",
            sub_domain=_optional_str(oauth_section, "sub_domain") or "",
            region=_optional_str(oauth_section, "region") or DEFAULT_REGION,
        )

    return AccountConfig(
        id=account_id,
        api_token=_optional_str(section, "api_token"),
        oauth=oauth,
        is_default=bool(section.get("is_default", False)) and not legacy,
        api_base_url=_optional_str(section, "api_base_url"),
    )


def _optional_str(section: ConfigMapping, key: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"pagerduty option '{key}' must be a string")
    value = value.strip()
    return value or None


def load_pagerduty_config_file(path: Path) -> PagerDutyConfig:
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc

    section = document.get("pagerduty")
    if not isinstance(section, dict):
        raise ConfigurationError(f"No [pagerduty] table in {path}")
    return parse_pagerduty_config(cast(ConfigMapping, section))


def _config_from_environment() -> PagerDutyConfig:
    oauth_values = {
        "client_id": optional_env_var("PAGERDUTY_OAUTH_CLIENT_ID"),
        "client_secret": optional_env_var("PAGERDUTY_OAUTH_CLIENT_SECRET"),
        "sub_domain": optional_env_var("PAGERDUTY_OAUTH_SUBDOMAIN"),
        "region": optional_env_var("PAGERDUTY_OAUTH_REGION"),
    }
    section: dict[str, object] = {
        "api_token": optional_env_var("PAGERDUTY_API_TOKEN"),
        "api_base_url": optional_env_var("PAGERDUTY_API_BASE_URL"),
    }
    if any(oauth_values.values()):
        section["oauth"] = oauth_values
    return parse_pagerduty_config(section)


def get_pagerduty_config() -> PagerDutyConfig:
    """Read the config file named by ``DUTYSYNC_CONFIG_FILE``, else legacy env vars."""

    config_file = os.getenv(CONFIG_FILE_ENV_VAR)
    if config_file:
        return load_pagerduty_config_file(Path(config_file).expanduser())
    return _config_from_environment()
