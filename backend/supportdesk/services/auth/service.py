# supportdesk/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError

from supportdesk.models.refresh_token import REVOKED_LOGOUT, REVOKED_ROTATED, RefreshToken
from supportdesk.models.tenant import SubscriptionPlan, Tenant, TenantStatus
from supportdesk.models.user import User, UserRole
from supportdesk.services._shared.base import BaseService
from supportdesk.services._shared.ports import AccessSubject, CredentialStore, TokenIssuer
from supportdesk.services._shared.result import ErrorKind, Result
from supportdesk.services.auth.dto import (
    AuthSessionOut,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionConfig,
    UserOut,
)
from supportdesk.services.auth.sessions import evict_excess_sessions, new_refresh_credential

log = logging.getLogger(__name__)

EMAIL_TAKEN = "A user with this email already exists"
INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DISABLED = "Your account has been deactivated. Please contact support."
INVALID_REFRESH = "Invalid or expired refresh token"
USER_NOT_FOUND = "User not found"
REGISTRATION_FAILED = "An error occurred during registration. Please try again later."
TRY_AGAIN_LATER = "An error occurred. Please try again later."


class AuthService(BaseService):
    """
    Session lifecycle service (register / login / refresh / logout).

    Access credentials are stateless and signed by the :class:`TokenIssuer`;
    refresh credentials are stored by hash and rotated on every refresh. After
    each issuance the user's active credentials are capped (soft cap: older
    sessions are evicted, new logins are never refused).

    Every public operation returns a :class:`Result`; authentication failures
    carry an opaque message and the detail only goes to the log.
    """

    def __init__(
        self,
        *,
        token_issuer: TokenIssuer,
        config: SessionConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        :param token_issuer: Signs and decodes access credentials, mints and
            hashes refresh secrets.
        :param config: Lifetimes and the concurrency cap.
        :param clock: Optional UTC clock override.
        """
        super().__init__(clock=clock)
        self.tokens = token_issuer
        self.cfg = config or SessionConfig()

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn, client_ip: str | None = None) -> Result[AuthSessionOut]:
        """
        Create a tenant, its admin user and the first session atomically.

        A duplicate email found by the pre-check or by the unique constraint
        at insert time yields the same ``CONFLICT`` failure.
        """
        email = dto.email.strip().lower()
        with self.ro_uow() as uow:
            if uow.users.exists_by_email(email):
                log.info("auth.register.rejected: reason=email_taken email=%s", email)
                return Result.failure(ErrorKind.CONFLICT, EMAIL_TAKEN)

        try:
            with self.rw_uow() as uow:
                now = self.now()
                tenant = uow.tenants.add(
                    Tenant(
                        name=dto.company_name,
                        status=TenantStatus.ACTIVE,
                        plan=SubscriptionPlan.FREE,
                    )
                )
                user = User(
                    tenant_id=tenant.id,
                    email=email,
                    first_name=dto.first_name,
                    last_name=dto.last_name,
                    role=UserRole.ADMIN,
                    is_active=True,
                )
                user.password = dto.password
                user.tenant = tenant
                uow.users.add(user)
                secret, _ = self._mint_refresh(uow.refresh_tokens, user, now, client_ip)
                out = self._session_out(user, secret)
        except IntegrityError:
            log.warning("auth.register.rejected: reason=email_taken_race email=%s", email)
            return Result.failure(ErrorKind.CONFLICT, EMAIL_TAKEN)
        except ValueError as exc:
            return Result.failure(ErrorKind.VALIDATION, str(exc))
        except Exception:
            log.exception("auth.register.failed: email=%s", email)
            return Result.failure(ErrorKind.UNEXPECTED, REGISTRATION_FAILED)

        log.info(
            "auth.register.succeeded",
            extra={"user_id": out.user.id, "tenant_id": out.user.tenant_id},
        )
        self.enforce_session_cap(out.user.id, client_ip)
        return Result.success(out)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn, client_ip: str | None = None) -> Result[AuthSessionOut]:
        """
        Authenticate credentials and start a new session.

        Unknown email and wrong password fail identically; a deactivated
        account fails distinctly, and only once the password is correct.
        """
        email = dto.email.strip().lower()
        try:
            with self.rw_uow() as uow:
                user = uow.users.get_by_email(email)
                if user is None or not user.verify_password(dto.password):
                    log.warning(
                        "auth.login.failed: reason=%s email=%s",
                        "unknown_email" if user is None else "bad_password",
                        email,
                    )
                    return Result.failure(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS)
                if not user.is_active:
                    log.warning("auth.login.failed: reason=inactive user_id=%s", user.id)
                    return Result.failure(ErrorKind.ACCOUNT_DISABLED, ACCOUNT_DISABLED)

                now = self.now()
                user.last_login_at = now
                secret, _ = self._mint_refresh(uow.refresh_tokens, user, now, client_ip)
                out = self._session_out(user, secret)
        except Exception:
            log.exception("auth.login.error: email=%s", email)
            return Result.failure(ErrorKind.UNEXPECTED, TRY_AGAIN_LATER)

        log.info("auth.login.succeeded", extra={"user_id": out.user.id})
        self.enforce_session_cap(out.user.id, client_ip)
        return Result.success(out)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn, client_ip: str | None = None) -> Result[AuthSessionOut]:
        """
        Rotate a refresh credential and emit a new pair.

        Security
        --------
        - The principal comes from the presented access token, verified
          except for expiry; the secret must belong to that principal.
        - The consumed credential is revoked with a conditional update. When
          that update loses a race the whole rotation is rolled back, so a
          secret yields at most one successor.
        """
        user_id = self._subject_user_id(self.tokens.decode_ignoring_expiry(dto.access_token))
        if user_id is None:
            log.warning("auth.refresh.rejected: reason=bad_access_token")
            return Result.failure(ErrorKind.AUTHENTICATION, INVALID_REFRESH)

        token_hash = self.tokens.hash_secret(dto.refresh_token)
        try:
            with self.rw_uow() as uow:
                now = self.now()
                current = uow.refresh_tokens.find_by_hash(token_hash)
                reason = self._rejection_reason(current, user_id, now)
                user = uow.users.get(user_id) if reason is None else None
                if reason is None and user is None:
                    reason = "unknown_user"
                elif user is not None and not user.is_active:
                    reason = "inactive"
                if reason is not None or current is None or user is None:
                    log.warning(
                        "auth.refresh.rejected: reason=%s",
                        reason,
                        extra={"user_id": user_id, "reason": reason},
                    )
                    return Result.failure(ErrorKind.AUTHENTICATION, INVALID_REFRESH)

                secret, successor = self._mint_refresh(uow.refresh_tokens, user, now, client_ip)
                won = uow.refresh_tokens.update_revocation(
                    current.id,
                    revoked_at=now,
                    reason=REVOKED_ROTATED,
                    revoked_by_ip=client_ip,
                    replaced_by_token_id=successor.id,
                )
                if not won:
                    uow.rollback()
                    log.warning(
                        "auth.refresh.rejected: reason=concurrent_rotation",
                        extra={"user_id": user_id, "reason": "concurrent_rotation"},
                    )
                    return Result.failure(ErrorKind.AUTHENTICATION, INVALID_REFRESH)
                out = self._session_out(user, secret)
        except Exception:
            log.exception("auth.refresh.error: user_id=%s", user_id)
            return Result.failure(ErrorKind.UNEXPECTED, TRY_AGAIN_LATER)

        log.info("auth.refresh.rotated", extra={"user_id": user_id})
        self.enforce_session_cap(user_id, client_ip)
        return Result.success(out)

    # ------------------------------------------------------------------ #
    # Logout / current user
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn, client_ip: str | None = None) -> Result[None]:
        """Revoke one of the caller's own active refresh credentials."""
        token_hash = self.tokens.hash_secret(dto.refresh_token)
        try:
            with self.rw_uow() as uow:
                now = self.now()
                current = uow.refresh_tokens.find_by_hash(token_hash)
                reason = self._rejection_reason(current, dto.user_id, now)
                if reason is None and current is not None:
                    if not uow.refresh_tokens.update_revocation(
                        current.id, revoked_at=now, reason=REVOKED_LOGOUT, revoked_by_ip=client_ip
                    ):
                        reason = "revoked"
                if reason is not None:
                    log.warning(
                        "auth.logout.rejected: reason=%s",
                        reason,
                        extra={"user_id": dto.user_id, "reason": reason},
                    )
                    return Result.failure(ErrorKind.AUTHENTICATION, INVALID_REFRESH)
        except Exception:
            log.exception("auth.logout.error: user_id=%s", dto.user_id)
            return Result.failure(ErrorKind.UNEXPECTED, TRY_AGAIN_LATER)

        log.info("auth.logout.succeeded", extra={"user_id": dto.user_id})
        return Result.success(None)

    def current_user(self, user_id: int) -> Result[UserOut]:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                return Result.failure(ErrorKind.NOT_FOUND, USER_NOT_FOUND)
            return Result.success(self._user_out(user))

    # ------------------------------------------------------------------ #
    # Concurrency cap
    # ------------------------------------------------------------------ #

    def enforce_session_cap(self, user_id: int, client_ip: str | None = None) -> int:
        """
        Evict the user's sessions beyond the configured maximum.

        Runs in its own transaction after the issuing one has committed; a
        failure here is logged and never undoes the issued tokens.

        :returns: Number of credentials revoked.
        """
        if self.cfg.max_active_sessions <= 0:
            return 0
        try:
            with self.rw_uow() as uow:
                revoked = evict_excess_sessions(
                    uow.refresh_tokens,
                    user_id,
                    max_active=self.cfg.max_active_sessions,
                    now=self.now(),
                    revoked_by_ip=client_ip,
                )
        except Exception:
            log.exception("auth.session_cap.failed: user_id=%s", user_id)
            return 0
        if revoked:
            log.info(
                "auth.session_cap.evicted", extra={"user_id": user_id, "revoked": revoked}
            )
        return revoked

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _mint_refresh(
        self,
        store: CredentialStore,
        user: User,
        now: datetime,
        client_ip: str | None,
    ) -> tuple[str, RefreshToken]:
        """Generate a secret, persist only its hash, return both."""
        secret = self.tokens.issue_refresh_secret()
        credential = store.insert(
            new_refresh_credential(
                user_id=user.id,
                token_hash=self.tokens.hash_secret(secret),
                now=now,
                lifetime=self.cfg.refresh_expires,
                client_ip=client_ip,
            )
        )
        return secret, credential

    def _session_out(self, user: User, refresh_secret: str) -> AuthSessionOut:
        issued = self.tokens.issue_access(
            AccessSubject(
                user_id=user.id,
                tenant_id=user.tenant_id,
                role=UserRole(user.role).value,
                email=user.email,
            )
        )
        return AuthSessionOut(
            access_token=issued.token,
            refresh_token=refresh_secret,
            expires_at=issued.expires_at,
            user=self._user_out(user),
        )

    @staticmethod
    def _user_out(user: User) -> UserOut:
        return UserOut(
            id=user.id,
            tenant_id=user.tenant_id,
            tenant_name=user.tenant.name,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=UserRole(user.role).value,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
        )

    @staticmethod
    def _rejection_reason(
        credential: RefreshToken | None, user_id: int, now: datetime
    ) -> str | None:
        if credential is None:
            return "unknown_token"
        if credential.user_id != user_id:
            return "subject_mismatch"
        if credential.is_revoked():
            return "revoked"
        if credential.is_expired(now):
            return "expired"
        return None

    @staticmethod
    def _subject_user_id(claims: dict[str, Any] | None) -> int | None:
        """Extract the integer user id from decoded claims, if well-formed."""
        if not claims:
            return None
        subject = claims.get("sub")
        if isinstance(subject, int):
            return subject
        if isinstance(subject, str) and subject.isdigit():
            return int(subject)
        return None
