"""PagerDuty REST and identity adapters."""

from __future__ import annotations

from .client import PagerDutyClient
from .oauth import OAuthTokenAcquirer, build_scope

__all__ = ["OAuthTokenAcquirer", "PagerDutyClient", "build_scope"]
