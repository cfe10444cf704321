"""Errors raised by provider and catalog adapters.

Configuration problems use :class:`dutysync.config.ConfigurationError`; everything
that happens while talking to a remote system derives from :class:`ProviderError`.
"""

from __future__ import annotations


class ProviderError(RuntimeError):
    """Base class for failures reaching or understanding a remote system."""

    default_status: int | None = None

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status if status is not None else self.default_status


class TransportError(ProviderError):
    """The remote endpoint could not be reached (network failure or timeout)."""


class InvalidArgumentsError(ProviderError):
    default_status = 400


class AuthError(ProviderError):
    """Credentials were missing, invalid or lacked permission (401/403)."""

    default_status = 401


class NotFoundError(ProviderError):
    default_status = 404


class RateLimitError(ProviderError):
    """The caller exceeded the provider rate limit and must back off."""

    default_status = 429


class ParseError(ProviderError):
    """A response body did not match the expected schema."""

    default_status = 500


def error_for_status(status: int, message: str) -> ProviderError | None:
    """Map an HTTP status to the matching error, or ``None`` for success codes."""

    if status < 400:
        return None
    if status == 400:
        return InvalidArgumentsError(message, status=status)
    if status in {401, 403}:
        return AuthError(message, status=status)
    if status == 404:
        return NotFoundError(message, status=status)
    if status == 429:
        return RateLimitError(message, status=status)
    return ProviderError(message, status=status)
