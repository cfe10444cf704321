"""Client-credentials token exchange against the PagerDuty identity endpoint."""

from __future__ import annotations

from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from dutysync.adapters.http_resilience import ResilientClient, default_client_factory
from dutysync.config.errors import MissingConfigurationError
from dutysync.config.pagerduty import (
    DEFAULT_REGION,
    PAGERDUTY_IDENTITY_URL,
    default_identity_resilience,
)
from dutysync.domain.auth.resolver import utcnow
from dutysync.domain.errors import AuthError, InvalidArgumentsError, ParseError
from dutysync.domain.ports.identity import AcquiredToken

from .schema import OAuthTokenResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from dutysync.config.http_resilience import ResilienceConfig
    from dutysync.domain.auth.resolver import Clock

log = getLogger(__name__)

OAUTH_SCOPES: Final[tuple[str, ...]] = (
    "abilities.read",
    "analytics.read",
    "change_events.read",
    "escalation_policies.read",
    "incidents.read",
    "oncalls.read",
    "schedules.read",
    "services.read",
    "services.write",
    "standards.read",
    "teams.read",
    "users.read",
    "vendors.read",
)


def build_scope(sub_domain: str, region: str = DEFAULT_REGION) -> str:
    return " ".join((f"as_account-{region}.{sub_domain}", *OAUTH_SCOPES))


class OAuthTokenAcquirer:
    """Exchange OAuth client credentials for a ``Bearer`` token with an expiry."""

    def __init__(
        self,
        *,
        resilience: ResilienceConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] = default_client_factory,
        clock: Clock = utcnow,
    ) -> None:
        self._resilience = resilience or default_identity_resilience()
        self._client_factory = client_factory
        self._clock = clock

    async def acquire(
        self,
        client_id: str,
        client_secret: str,
        sub_domain: str,
        region: str = DEFAULT_REGION,
    ) -> AcquiredToken:
        if not client_id or not client_secret or not sub_domain:
            raise MissingConfigurationError(
                "Missing required PagerDuty OAuth parameters: "
                "'client_id', 'client_secret' and 'sub_domain' are required."
            )

        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": build_scope(sub_domain, region or DEFAULT_REGION),
        }
        url = self._resilience.base_url or PAGERDUTY_IDENTITY_URL
        async with self._client_factory(self._resilience) as client:
            response = await client.post(
                url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )

        if response.status_code == 400:
            raise InvalidArgumentsError(
                "Failed to retrieve valid token. Bad Request - Invalid arguments provided.",
                status=400,
            )
        if response.status_code == 401:
            raise AuthError(
                "Failed to retrieve valid token. Forbidden - Invalid credentials provided.",
                status=401,
            )

        try:
            payload = OAuthTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ParseError(f"Failed to parse OAuth token response: {exc}") from exc

        expires_at = self._clock() + timedelta(seconds=payload.expires_in)
        log.debug("OAuth token for %s expires at %s", sub_domain, expires_at.isoformat())
        return AcquiredToken(token=f"Bearer {payload.access_token}", expires_at=expires_at)


if TYPE_CHECKING:
    from dutysync.domain.ports.identity import TokenAcquirer

    _acquirer_check: TokenAcquirer = OAuthTokenAcquirer()
