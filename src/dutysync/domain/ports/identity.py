"""Port for exchanging client credentials for an access token."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class AcquiredToken:
    token: str
    expires_at: datetime


@runtime_checkable
class TokenAcquirer(Protocol):
    async def acquire(
        self,
        client_id: str,
        client_secret: str,
        sub_domain: str,
        region: str = "us",
    ) -> AcquiredToken: ...
