"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from supportdesk.models.user import User, UserRole
from tests.factories.tenant import TenantFactory


def _user(tenant, email: str) -> User:
    u = User(tenant=tenant, email=email, first_name="Ada", last_name="Lovelace")
    u.password = "Passw0rd!"
    return u


class TestUser:
    def test_password_hashing(self, session):
        u = _user(TenantFactory(), "Test@Example.com")
        session.add(u)
        session.commit()
        assert u.password_hash != "Passw0rd!"
        assert u.verify_password("Passw0rd!") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(email="a@example.com", first_name="A", last_name="B")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_email_normalized_and_unique_across_tenants(self, session):
        u1 = _user(TenantFactory(), "Alice@Example.com ")
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        session.add(_user(TenantFactory(), "alice@example.com"))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_defaults(self, session):
        u = _user(TenantFactory(), "defaults@example.com")
        session.add(u)
        session.commit()
        assert u.role == UserRole.USER
        assert u.is_active is True
        assert u.last_login_at is None
        assert u.full_name == "Ada Lovelace"

    @pytest.mark.parametrize("email", ["", "no-at-sign", "user@nodot"])
    def test_email_validation(self, email):
        with pytest.raises(ValueError):
            User(email=email, first_name="A", last_name="B")

    def test_blank_names_rejected(self):
        with pytest.raises(ValueError, match="First name"):
            User(email="n@example.com", first_name="  ", last_name="B")
