"""Process-wide credential cache keyed by account id."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dutysync.domain.model import AccountCredential

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(slots=True)
class AccountRegistry:
    """Credential state shared by every provider call of the hosting process.

    The hosting process owns one instance and hands it to the resolver. Each
    account entry is replaced as a whole under that account's lock, so readers
    observe either the previous credential or the new one.
    """

    legacy_mode: bool = True
    default_account_id: str | None = None
    initialized: bool = False
    _credentials: dict[str, AccountCredential] = field(default_factory=dict)
    _locks: dict[str, threading.Lock] = field(default_factory=dict)
    _locks_guard: threading.Lock = field(default_factory=threading.Lock)

    def _lock_for(self, account_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[account_id] = lock
            return lock

    def get(self, account_id: str) -> AccountCredential | None:
        with self._lock_for(account_id):
            return self._credentials.get(account_id)

    def store(self, account_id: str, credential: AccountCredential) -> None:
        with self._lock_for(account_id), self._locks_guard:
            self._credentials[account_id] = credential

    def account_ids(self) -> tuple[str, ...]:
        with self._locks_guard:
            return tuple(self._credentials)

    def credentialed_account_ids(self) -> tuple[str, ...]:
        """Account ids holding a non-empty credential, expired OAuth tokens included."""

        credentialed: list[str] = []
        for account_id in self.account_ids():
            credential = self.get(account_id)
            if credential is not None and credential.is_set:
                credentialed.append(account_id)
        return tuple(credentialed)

    def retain(self, account_ids: Iterable[str]) -> None:
        """Drop every account not listed in ``account_ids``."""

        keep = set(account_ids)
        for account_id in self.account_ids():
            if account_id in keep:
                continue
            with self._lock_for(account_id), self._locks_guard:
                self._credentials.pop(account_id, None)

    def __contains__(self, account_id: object) -> bool:
        return isinstance(account_id, str) and self.get(account_id) is not None

    def __len__(self) -> int:
        return len(self.account_ids())
