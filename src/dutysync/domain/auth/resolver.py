"""Resolve header-ready PagerDuty tokens per account, refreshing on expiry."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from dutysync.config.errors import ConfigurationError
from dutysync.config.pagerduty import DEFAULT_ACCOUNT_ID, AccountConfig, PagerDutyConfig
from dutysync.domain.errors import ProviderError
from dutysync.domain.model import AccountCredential

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dutysync.domain.auth.registry import AccountRegistry
    from dutysync.domain.ports.identity import TokenAcquirer

log = getLogger(__name__)

type ConfigLoader = Callable[[], PagerDutyConfig]
type Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class TokenResolver:
    """Load account credentials into an :class:`AccountRegistry` and hand them out.

    ``load_configuration`` re-reads the configuration through ``config_loader`` on
    every call and refreshes all accounts. ``resolve_token`` returns an empty
    string when no usable credential exists; callers treat that as "no credential"
    rather than an error.
    """

    def __init__(
        self,
        *,
        registry: AccountRegistry,
        config_loader: ConfigLoader,
        acquirer: TokenAcquirer,
        clock: Clock = utcnow,
    ) -> None:
        self._registry = registry
        self._config_loader = config_loader
        self._acquirer = acquirer
        self._clock = clock
        self._config = PagerDutyConfig()

    @property
    def registry(self) -> AccountRegistry:
        return self._registry

    @property
    def config(self) -> PagerDutyConfig:
        """The configuration read by the last successful load."""

        return self._config

    def effective_account_id(self, account_id: str | None = None) -> str:
        if self._registry.legacy_mode:
            return DEFAULT_ACCOUNT_ID
        return account_id or self._registry.default_account_id or ""

    async def resolve_token(self, account_id: str | None = None) -> str:
        if not self._registry.initialized:
            await self.load_configuration()

        effective_id = self.effective_account_id(account_id)
        if not effective_id:
            log.warning("No PagerDuty account requested and no default account configured")
            return ""

        credential = self._registry.get(effective_id)
        if credential is None and not self._registry.legacy_mode:
            log.warning("Unknown PagerDuty account '%s'", effective_id)
            return ""
        if credential is not None and credential.is_valid(self._clock()):
            return credential.token

        if credential is not None and credential.is_expired(self._clock()):
            log.info("OAuth token for PagerDuty account '%s' expired, reloading", effective_id)
        await self.load_configuration()

        effective_id = self.effective_account_id(account_id)
        credential = self._registry.get(effective_id) if effective_id else None
        if credential is not None and credential.is_valid(self._clock()):
            return credential.token

        log.warning("No valid PagerDuty credential available for account '%s'", effective_id)
        return ""

    async def load_configuration(self) -> None:
        """Reload every configured account. Failures are logged, never raised."""

        try:
            config = self._config_loader()
        except ConfigurationError as exc:
            log.error(f"Unable to read PagerDuty configuration: {exc}")
            self._registry.initialized = True
            return

        self._config = config
        if config.is_multi_account:
            await self._load_accounts(config.accounts or ())
        else:
            await self._load_legacy(config.legacy_account or AccountConfig())
        self._registry.initialized = True

    async def _load_legacy(self, account: AccountConfig) -> None:
        credential = await self._guarded_load(account)
        self._apply(DEFAULT_ACCOUNT_ID, credential)
        self._registry.retain((DEFAULT_ACCOUNT_ID,))
        self._registry.legacy_mode = True
        self._registry.default_account_id = DEFAULT_ACCOUNT_ID

    async def _load_accounts(self, accounts: Sequence[AccountConfig]) -> None:
        credentials = await asyncio.gather(*(self._guarded_load(account) for account in accounts))
        for account, credential in zip(accounts, credentials, strict=True):
            self._apply(account.id, credential)
        self._registry.retain(account.id for account in accounts)
        self._registry.legacy_mode = False
        self._registry.default_account_id = _select_default_account(accounts)

    def _apply(self, account_id: str, credential: AccountCredential | None) -> None:
        if credential is not None:
            self._registry.store(account_id, credential)
        elif self._registry.get(account_id) is None:
            self._registry.store(account_id, AccountCredential.unset())

    async def _guarded_load(self, account: AccountConfig) -> AccountCredential | None:
        try:
            return await self._load_account(account)
        except Exception:
            log.exception("Unexpected failure loading PagerDuty account '%s'", account.id)
            return None

    async def _load_account(self, account: AccountConfig) -> AccountCredential | None:
        """Return the new credential, or ``None`` to keep the previous one."""

        if account.api_token:
            log.info("PagerDuty API token loaded for account '%s'", account.id)
            return AccountCredential.static(account.api_token)

        oauth = account.oauth
        if oauth is None:
            log.error(
                "No PagerDuty API token or OAuth configuration found for account '%s'",
                account.id,
            )
            return AccountCredential.unset()
        if not oauth.is_complete:
            log.error(
                "Missing required PagerDuty OAuth parameters for account '%s'. "
                "'client_id', 'client_secret' and 'sub_domain' are required; "
                "'region' is optional.",
                account.id,
            )
            return AccountCredential.unset()

        try:
            acquired = await self._acquirer.acquire(
                oauth.client_id,
                oauth.client_secret,
                oauth.sub_domain,
                oauth.region,
            )
        except (ConfigurationError, ProviderError) as exc:
            log.error(f"Unable to retrieve PagerDuty OAuth token for account '{account.id}': {exc}")
            return None

        log.info("PagerDuty OAuth token loaded for account '%s'", account.id)
        return AccountCredential.oauth(acquired.token, acquired.expires_at)


def _select_default_account(accounts: Sequence[AccountConfig]) -> str | None:
    if len(accounts) == 1:
        return accounts[0].id

    flagged = [account.id for account in accounts if account.is_default]
    if len(flagged) > 1:
        log.warning(
            "Several PagerDuty accounts are marked as default; using '%s' and ignoring %s",
            flagged[0],
            ", ".join(flagged[1:]),
        )
    if flagged:
        return flagged[0]

    log.error(
        "No default PagerDuty account configured; only accounts referenced by id are reachable"
    )
    return None
