# supportdesk/infra/jwt/flask_jwt_token_issuer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import uuid4

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from supportdesk.services._shared.ports import (
    AccessSubject,
    IssuedAccessToken,
    TokenIssuer,
    generate_refresh_secret,
    hash_refresh_secret,
)

log = logging.getLogger(__name__)


@dataclass(slots=True)
class JWTTokenIssuer(TokenIssuer):
    """
    Adapter for Flask-JWT-Extended.

    Signing key, algorithm, issuer, audience and leeway come from the app's
    ``JWT_*`` settings.

    .. note::
       Requires an active Flask app context with proper JWT settings.

    :param access_expires: Access credential lifetime.
    """

    access_expires: timedelta = timedelta(minutes=60)

    def issue_access(self, subject: AccessSubject) -> IssuedAccessToken:
        jti = uuid4().hex
        token = cast(
            str,
            create_access_token(
                identity=str(subject.user_id),
                additional_claims={
                    "tid": subject.tenant_id,
                    "role": subject.role,
                    "email": subject.email,
                    "jti": jti,
                },
                expires_delta=self.access_expires,
            ),
        )
        # Read exp back so the reported expiry matches the signed claim.
        claims = cast(dict[str, Any], decode_token(token))
        return IssuedAccessToken(
            token=token,
            jti=jti,
            expires_at=datetime.fromtimestamp(int(claims["exp"]), tz=UTC),
        )

    def issue_refresh_secret(self) -> str:
        return generate_refresh_secret()

    def hash_secret(self, raw: str) -> str:
        return hash_refresh_secret(raw)

    def verify(self, token: str) -> dict[str, Any] | None:
        return self._decode(token, allow_expired=False)

    def decode_ignoring_expiry(self, token: str) -> dict[str, Any] | None:
        return self._decode(token, allow_expired=True)

    @staticmethod
    def _decode(token: str, *, allow_expired: bool) -> dict[str, Any] | None:
        if not token:
            return None
        try:
            claims = cast(dict[str, Any], decode_token(token, allow_expired=allow_expired))
        except (PyJWTError, JWTExtendedException) as exc:
            log.info("auth.token.rejected: reason=%s", type(exc).__name__)
            return None
        if claims.get("type") != "access":
            return None
        return claims
