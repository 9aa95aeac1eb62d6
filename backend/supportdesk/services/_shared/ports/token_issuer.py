from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol
from uuid import uuid4

from supportdesk.core.clock import utcnow

# 64 random bytes -> 512 bits of entropy
REFRESH_SECRET_BYTES = 64


def generate_refresh_secret() -> str:
    """Return a URL-safe raw refresh secret. Hand it to the caller once."""
    return secrets.token_urlsafe(REFRESH_SECRET_BYTES)


def hash_refresh_secret(raw: str) -> str:
    """Return the hex SHA-256 digest used to store and look up a secret."""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class AccessSubject:
    """
    Claims source for an access credential.

    :ivar user_id: Principal id, carried as the ``sub`` claim.
    :ivar tenant_id: Owning tenant id (``tid``).
    :ivar role: Role name (``role``).
    :ivar email: Login email (``email``).
    """

    user_id: int
    tenant_id: int
    role: str
    email: str


@dataclass(frozen=True, slots=True)
class IssuedAccessToken:
    token: str
    jti: str
    expires_at: datetime


class TokenIssuer(Protocol):
    """Port for stateless credential cryptography."""

    def issue_access(self, subject: AccessSubject) -> IssuedAccessToken: ...

    def issue_refresh_secret(self) -> str: ...

    def hash_secret(self, raw: str) -> str: ...

    def verify(self, token: str) -> dict[str, Any] | None:
        """Fully validate a token; ``None`` when anything is wrong."""

    def decode_ignoring_expiry(self, token: str) -> dict[str, Any] | None:
        """Validate everything except expiry; ``None`` when anything else is wrong."""


class StubTokenIssuer(TokenIssuer):
    """Deterministic, in-memory issuer used in unit tests.

    Tokens are opaque ``access.<user>.<jti>`` strings remembered by the
    instance; unknown strings decode to ``None`` like a bad signature would.
    """

    def __init__(self, *, access_expires: timedelta = timedelta(minutes=60)) -> None:
        self.access_expires = access_expires
        self._issued: dict[str, dict[str, Any]] = {}

    def issue_access(self, subject: AccessSubject) -> IssuedAccessToken:
        jti = uuid4().hex
        expires_at = utcnow() + self.access_expires
        token = f"access.{subject.user_id}.{jti}"
        self._issued[token] = {
            "sub": str(subject.user_id),
            "tid": subject.tenant_id,
            "role": subject.role,
            "email": subject.email,
            "jti": jti,
            "exp": int(expires_at.timestamp()),
        }
        return IssuedAccessToken(token=token, jti=jti, expires_at=expires_at)

    def issue_refresh_secret(self) -> str:
        return generate_refresh_secret()

    def hash_secret(self, raw: str) -> str:
        return hash_refresh_secret(raw)

    def verify(self, token: str) -> dict[str, Any] | None:
        claims = self._issued.get(token)
        if claims is None or claims["exp"] <= int(utcnow().timestamp()):
            return None
        return dict(claims)

    def decode_ignoring_expiry(self, token: str) -> dict[str, Any] | None:
        claims = self._issued.get(token)
        return dict(claims) if claims is not None else None
