# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from freezegun import freeze_time
from supportdesk.models import RefreshToken, Tenant, User
from supportdesk.models.refresh_token import REVOKED_CAP_EXCEEDED, REVOKED_LOGOUT, REVOKED_ROTATED
from supportdesk.models.user import UserRole
from supportdesk.repositories.refresh_token import RefreshTokenRepository
from supportdesk.services._shared.ports import StubTokenIssuer, hash_refresh_secret
from supportdesk.services._shared.result import ErrorKind
from supportdesk.services.auth import service as auth_service_module
from supportdesk.services.auth.dto import (
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionConfig,
)
from supportdesk.services.auth.service import (
    ACCOUNT_DISABLED,
    INVALID_CREDENTIALS,
    INVALID_REFRESH,
    AuthService,
)
from tests.factories.user import UserFactory

PASSWORD = "Passw0rd!"


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def issuer() -> StubTokenIssuer:
    return StubTokenIssuer()


@pytest.fixture()
def service(issuer) -> AuthService:
    """Build an AuthService wired to the stub issuer and the SQL stores."""
    return AuthService(token_issuer=issuer, config=SessionConfig())


@pytest.fixture()
def user(session) -> User:
    u = UserFactory(email="agent@acme.test", password=PASSWORD)
    session.commit()
    return u


def _login(service, email="agent@acme.test", password=PASSWORD, ip="10.0.0.1"):
    return service.login(LoginIn(email=email, password=password), client_ip=ip)


def _active(session, user_id: int) -> list[RefreshToken]:
    session.expire_all()
    return RefreshTokenRepository(session=session).list_active_for_principal(
        user_id, datetime.now(UTC)
    )


# ------------------------------- Register --------------------------------- #
def test_register_creates_tenant_admin_and_first_session(service, session):
    result = service.register(
        RegisterIn(
            company_name="Acme Support",
            email="Owner@Acme.test",
            first_name="Ada",
            last_name="Lovelace",
            password=PASSWORD,
        ),
        client_ip="10.0.0.9",
    )

    assert result.ok, result.message
    out = result.value
    assert out.user.email == "owner@acme.test"
    assert out.user.role == UserRole.ADMIN.value
    assert out.user.tenant_name == "Acme Support"

    tenant = session.get(Tenant, out.user.tenant_id)
    assert tenant is not None
    stored = _active(session, out.user.id)
    assert len(stored) == 1
    assert stored[0].created_by_ip == "10.0.0.9"


def test_register_duplicate_email_conflicts(service, user, session):
    tenants_before = session.query(Tenant).count()

    result = service.register(
        RegisterIn(
            company_name="Other",
            email="AGENT@acme.test",
            first_name="B",
            last_name="C",
            password=PASSWORD,
        )
    )

    assert result.error is ErrorKind.CONFLICT
    assert session.query(Tenant).count() == tenants_before


def test_register_blank_company_is_a_validation_failure(service, session):
    result = service.register(
        RegisterIn(
            company_name="   ",
            email="new@acme.test",
            first_name="A",
            last_name="B",
            password=PASSWORD,
        )
    )
    assert result.error is ErrorKind.VALIDATION
    assert session.query(User).filter_by(email="new@acme.test").count() == 0


# -------------------------------- Login ----------------------------------- #
def test_login_issues_pair_and_stores_only_the_hash(service, user, session, issuer):
    result = _login(service)

    assert result.ok
    out = result.value
    claims = issuer.verify(out.access_token)
    assert claims["sub"] == str(user.id)
    assert claims["tid"] == user.tenant_id

    stored = _active(session, user.id)
    assert len(stored) == 1
    assert stored[0].token_hash == hash_refresh_secret(out.refresh_token)
    assert stored[0].token_hash != out.refresh_token
    assert session.get(User, user.id).last_login_at is not None


def test_login_failures_are_indistinguishable(service, user):
    unknown = _login(service, email="nobody@acme.test")
    wrong = _login(service, password="nope")

    assert unknown.error is wrong.error is ErrorKind.AUTHENTICATION
    assert unknown.message == wrong.message == INVALID_CREDENTIALS


def test_disabled_account_reported_only_with_correct_password(service, session):
    UserFactory(email="off@acme.test", password=PASSWORD, is_active=False)
    session.commit()

    assert _login(service, email="off@acme.test", password="nope").error is (
        ErrorKind.AUTHENTICATION
    )
    result = _login(service, email="off@acme.test")
    assert result.error is ErrorKind.ACCOUNT_DISABLED
    assert result.message == ACCOUNT_DISABLED


# ------------------------------- Refresh ---------------------------------- #
def test_refresh_rotates_and_old_secret_is_dead(service, user, session):
    first = _login(service).value

    second = service.refresh(
        RefreshIn(refresh_token=first.refresh_token, access_token=first.access_token)
    )
    assert second.ok
    assert second.value.refresh_token != first.refresh_token

    replay = service.refresh(
        RefreshIn(refresh_token=first.refresh_token, access_token=second.value.access_token)
    )
    assert replay.error is ErrorKind.AUTHENTICATION
    assert replay.message == INVALID_REFRESH

    session.expire_all()
    repo = RefreshTokenRepository(session=session)
    old = repo.find_by_hash(hash_refresh_secret(first.refresh_token))
    new = repo.find_by_hash(hash_refresh_secret(second.value.refresh_token))
    assert old.revoked_reason == REVOKED_ROTATED
    assert old.replaced_by_token_id == new.id
    assert new.is_active(datetime.now(UTC))


def test_refresh_rejects_secret_of_another_principal(service, user, session):
    mine = _login(service).value
    UserFactory(email="other@acme.test", password=PASSWORD)
    session.commit()
    theirs = _login(service, email="other@acme.test").value

    result = service.refresh(
        RefreshIn(refresh_token=theirs.refresh_token, access_token=mine.access_token)
    )
    assert result.error is ErrorKind.AUTHENTICATION


def test_refresh_rejects_unverifiable_access_token(service, user):
    session_out = _login(service).value
    result = service.refresh(
        RefreshIn(refresh_token=session_out.refresh_token, access_token="forged")
    )
    assert result.error is ErrorKind.AUTHENTICATION


def test_refresh_rejects_expired_secret(issuer, user):
    with freeze_time("2026-01-01 12:00:00"):
        service = AuthService(token_issuer=issuer)
        out = _login(service).value

    with freeze_time("2026-02-01 12:00:01"):
        result = service.refresh(
            RefreshIn(refresh_token=out.refresh_token, access_token=out.access_token)
        )
    assert result.error is ErrorKind.AUTHENTICATION


def test_refresh_rejects_deactivated_user(service, user, session):
    out = _login(service).value
    user.is_active = False
    session.commit()

    result = service.refresh(
        RefreshIn(refresh_token=out.refresh_token, access_token=out.access_token)
    )
    assert result.error is ErrorKind.AUTHENTICATION


def test_refresh_fails_closed_when_revocation_race_is_lost(service, user, session, monkeypatch):
    out = _login(service).value
    before = session.query(RefreshToken).count()

    monkeypatch.setattr(
        RefreshTokenRepository, "update_revocation", lambda self, *a, **kw: False
    )
    result = service.refresh(
        RefreshIn(refresh_token=out.refresh_token, access_token=out.access_token)
    )

    assert result.error is ErrorKind.AUTHENTICATION
    # The successor minted before the lost revoke was rolled back.
    assert session.query(RefreshToken).count() == before


# -------------------------------- Logout ---------------------------------- #
def test_logout_revokes_own_secret(service, user, session):
    out = _login(service).value

    result = service.logout(LogoutIn(refresh_token=out.refresh_token, user_id=user.id))

    assert result.ok
    assert _active(session, user.id) == []
    rt = RefreshTokenRepository(session=session).find_by_hash(
        hash_refresh_secret(out.refresh_token)
    )
    assert rt.revoked_reason == REVOKED_LOGOUT


def test_logout_rejects_foreign_or_reused_secret(service, user, session):
    out = _login(service).value
    other = UserFactory(password=PASSWORD)
    session.commit()

    assert service.logout(
        LogoutIn(refresh_token=out.refresh_token, user_id=other.id)
    ).error is ErrorKind.AUTHENTICATION
    assert service.logout(LogoutIn(refresh_token=out.refresh_token, user_id=user.id)).ok
    assert service.logout(
        LogoutIn(refresh_token=out.refresh_token, user_id=user.id)
    ).error is ErrorKind.AUTHENTICATION


def test_current_user(service, user):
    assert service.current_user(user.id).value.email == "agent@acme.test"
    assert service.current_user(999_999).error is ErrorKind.NOT_FOUND


# ---------------------------- Concurrency cap ----------------------------- #
def test_sixth_login_evicts_the_oldest_session(service, user, session):
    sessions = [_login(service).value for _ in range(6)]

    active = _active(session, user.id)
    assert len(active) == 5
    hashes = {rt.token_hash for rt in active}
    assert hash_refresh_secret(sessions[0].refresh_token) not in hashes
    assert hash_refresh_secret(sessions[-1].refresh_token) in hashes

    evicted = RefreshTokenRepository(session=session).find_by_hash(
        hash_refresh_secret(sessions[0].refresh_token)
    )
    assert evicted.revoked_reason == REVOKED_CAP_EXCEEDED


def test_cap_is_configurable(issuer, user, session):
    service = AuthService(
        token_issuer=issuer,
        config=SessionConfig(max_active_sessions=2, refresh_expires=timedelta(days=1)),
    )
    for _ in range(4):
        assert _login(service).ok
    assert len(_active(session, user.id)) == 2


def test_cap_failure_never_undoes_the_login(service, user, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("store down")

    monkeypatch.setattr(auth_service_module, "evict_excess_sessions", _boom)

    assert _login(service).ok
    assert service.enforce_session_cap(user.id) == 0
