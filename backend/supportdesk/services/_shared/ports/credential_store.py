from __future__ import annotations

import threading
from datetime import datetime
from typing import Protocol

from supportdesk.core.clock import ensure_utc
from supportdesk.models.refresh_token import RefreshToken


class CredentialStore(Protocol):
    """
    Durable record of issued refresh credentials, keyed by secret hash.

    ``update_revocation`` MUST be conditional on the credential not being
    revoked yet and report whether this call won.
    """

    def insert(self, credential: RefreshToken) -> RefreshToken: ...

    def find_by_hash(self, token_hash: str) -> RefreshToken | None: ...

    def list_active_for_principal(self, user_id: int, now: datetime) -> list[RefreshToken]:
        """Active credentials of ``user_id``, newest first."""

    def update_revocation(
        self,
        token_id: int,
        *,
        revoked_at: datetime,
        reason: str,
        revoked_by_ip: str | None = None,
        replaced_by_token_id: int | None = None,
    ) -> bool: ...


class InMemoryCredentialStore(CredentialStore):
    """
    Process-local credential store with the same conditional revocation.

    .. note::
       Uses a threading lock to make ``update_revocation`` atomic in tests.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, RefreshToken] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def insert(self, credential: RefreshToken) -> RefreshToken:
        with self._lock:
            self._seq += 1
            credential.id = self._seq
            self._by_id[credential.id] = credential
            return credential

    def find_by_hash(self, token_hash: str) -> RefreshToken | None:
        with self._lock:
            for credential in self._by_id.values():
                if credential.token_hash == token_hash:
                    return credential
            return None

    def list_active_for_principal(self, user_id: int, now: datetime) -> list[RefreshToken]:
        with self._lock:
            active = [
                c for c in self._by_id.values() if c.user_id == user_id and c.is_active(now)
            ]
        # Newest first; id breaks ties for credentials issued in the same instant
        return sorted(
            active, key=lambda c: (ensure_utc(c.issued_at), c.id), reverse=True
        )

    def update_revocation(
        self,
        token_id: int,
        *,
        revoked_at: datetime,
        reason: str,
        revoked_by_ip: str | None = None,
        replaced_by_token_id: int | None = None,
    ) -> bool:
        with self._lock:
            credential = self._by_id.get(token_id)
            if credential is None or credential.revoked_at is not None:
                return False
            credential.revoked_at = revoked_at
            credential.revoked_reason = reason
            credential.revoked_by_ip = revoked_by_ip
            if replaced_by_token_id is not None:
                credential.replaced_by_token_id = replaced_by_token_id
            return True
