"""Credential value objects for PagerDuty accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .enums import CredentialKind


@dataclass(frozen=True, slots=True)
class AccountCredential:
    """Header-ready token for one account.

    Static API tokens never expire. An OAuth token is invalid once ``now`` reaches
    ``expires_at``. An empty token means the account has no usable credential.
    """

    token: str = ""
    kind: CredentialKind = CredentialKind.STATIC
    expires_at: datetime | None = None

    @classmethod
    def unset(cls) -> AccountCredential:
        return cls()

    @classmethod
    def static(cls, api_token: str) -> AccountCredential:
        return cls(token=f"Token token={api_token}", kind=CredentialKind.STATIC)

    @classmethod
    def oauth(cls, token: str, expires_at: datetime) -> AccountCredential:
        return cls(token=token, kind=CredentialKind.OAUTH, expires_at=expires_at)

    @property
    def is_set(self) -> bool:
        return bool(self.token)

    def is_valid(self, now: datetime) -> bool:
        if not self.token:
            return False
        if self.kind is CredentialKind.STATIC:
            return True
        return self.expires_at is not None and now < self.expires_at

    def is_expired(self, now: datetime) -> bool:
        return (
            self.kind is CredentialKind.OAUTH
            and self.expires_at is not None
            and now >= self.expires_at
        )
