"""Refresh credential helpers shared by the session flows."""

from __future__ import annotations

from datetime import datetime, timedelta

from supportdesk.models.refresh_token import REVOKED_CAP_EXCEEDED, RefreshToken
from supportdesk.services._shared.ports import CredentialStore


def new_refresh_credential(
    *,
    user_id: int,
    token_hash: str,
    now: datetime,
    lifetime: timedelta,
    client_ip: str | None = None,
) -> RefreshToken:
    """Build an unsaved, active credential for ``user_id``."""
    return RefreshToken(
        user_id=user_id,
        token_hash=token_hash,
        issued_at=now,
        expires_at=now + lifetime,
        created_by_ip=client_ip,
    )


def evict_excess_sessions(
    store: CredentialStore,
    user_id: int,
    *,
    max_active: int,
    now: datetime,
    revoked_by_ip: str | None = None,
) -> int:
    """
    Revoke the user's oldest active credentials beyond ``max_active``.

    The newest ``max_active`` credentials survive. A credential revoked
    concurrently by someone else is skipped and not counted.

    :param store: Credential store to read and revoke through.
    :param user_id: Principal whose sessions are capped.
    :param max_active: Cap; ``0`` (or less) means unlimited.
    :param now: Reference time for activity and the revocation stamp.
    :param revoked_by_ip: Address recorded on evicted credentials.
    :returns: Number of credentials this call revoked.
    """
    if max_active <= 0:
        return 0
    active = store.list_active_for_principal(user_id, now)
    revoked = 0
    for credential in active[max_active:]:
        if store.update_revocation(
            credential.id,
            revoked_at=now,
            reason=REVOKED_CAP_EXCEEDED,
            revoked_by_ip=revoked_by_ip,
        ):
            revoked += 1
    return revoked
