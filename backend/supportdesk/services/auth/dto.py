from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for tenant + admin registration.

    :param company_name: Tenant display name.
    :param email: Admin login email.
    :param first_name: Admin first name.
    :param last_name: Admin last name.
    :param password: Raw password (hashed before storage).
    """

    company_name: str
    email: str
    first_name: str
    last_name: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :param password: Raw password (to be verified).
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Raw refresh secret issued earlier.
    :param access_token: The caller's (possibly expired) access token; it
        identifies the principal the secret must belong to.
    """

    refresh_token: str
    access_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    refresh_token: str
    user_id: int


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    id: int
    tenant_id: int
    tenant_name: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    last_login_at: datetime | None


@dataclass(frozen=True, slots=True)
class AuthSessionOut:
    """
    Output DTO for a successful register/login/refresh.

    :param access_token: Signed access credential.
    :param refresh_token: Raw refresh secret; shown to the caller exactly once.
    :param expires_at: Access credential expiry.
    :param user: Authenticated principal.
    """

    access_token: str
    refresh_token: str
    expires_at: datetime
    user: UserOut


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """
    Session lifecycle settings injected into :class:`AuthService`.

    :param access_expires: Access credential lifetime.
    :param refresh_expires: Refresh credential lifetime.
    :param max_active_sessions: Active refresh credentials kept per user;
        ``0`` disables the cap.
    """

    access_expires: timedelta = timedelta(minutes=60)
    refresh_expires: timedelta = timedelta(days=30)
    max_active_sessions: int = 5

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> SessionConfig:
        return cls(
            access_expires=timedelta(minutes=int(config.get("ACCESS_TOKEN_MINUTES", 60))),
            refresh_expires=timedelta(days=int(config.get("REFRESH_TOKEN_DAYS", 30))),
            max_active_sessions=int(config.get("MAX_ACTIVE_SESSIONS", 5)),
        )
