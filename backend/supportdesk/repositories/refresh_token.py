"""SQLAlchemy adapter for the credential store port."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from supportdesk.models.refresh_token import RefreshToken
from supportdesk.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Refresh credentials keyed by the SHA-256 hash of their secret.

    Implements :class:`~supportdesk.services._shared.ports.CredentialStore`.
    Revocation goes through a conditional ``UPDATE ... WHERE revoked_at IS
    NULL`` so two transactions racing on the same row cannot both win.
    """

    model = RefreshToken

    def insert(self, credential: RefreshToken) -> RefreshToken:
        """Persist a new credential and flush to obtain its id."""
        return self.add(credential)

    def find_by_hash(self, token_hash: str) -> RefreshToken | None:
        """
        Look a credential up by secret hash.

        :param token_hash: Hex SHA-256 digest of the raw secret.
        :returns: The credential, whatever its state, or ``None``.
        """
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def list_active_for_principal(self, user_id: int, now: datetime) -> list[RefreshToken]:
        """
        Return the user's active credentials, newest first.

        :param user_id: Owning user id.
        :param now: Reference time for the expiry check.
        """
        stmt = (
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .order_by(RefreshToken.issued_at.desc(), RefreshToken.id.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def update_revocation(
        self,
        token_id: int,
        *,
        revoked_at: datetime,
        reason: str,
        revoked_by_ip: str | None = None,
        replaced_by_token_id: int | None = None,
    ) -> bool:
        """
        Revoke a credential if and only if it is not revoked yet.

        :returns: ``True`` when this call performed the revocation, ``False``
            when the row was already revoked (or does not exist).
        """
        values: dict[str, object] = {
            "revoked_at": revoked_at,
            "revoked_reason": reason,
            "revoked_by_ip": revoked_by_ip,
        }
        if replaced_by_token_id is not None:
            values["replaced_by_token_id"] = replaced_by_token_id
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1
