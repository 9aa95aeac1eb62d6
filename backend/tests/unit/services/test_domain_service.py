# tests/unit/services/test_domain_service.py
from __future__ import annotations

import pytest
from supportdesk.models.domain import DomainClaim, DomainStatus
from supportdesk.services._shared.result import ErrorKind
from supportdesk.services.domains.service import (
    DOMAIN_NOT_VERIFIED,
    DOMAIN_TAKEN,
    INVALID_HOSTNAME,
    DomainService,
)
from tests.factories.domain import DomainClaimFactory
from tests.factories.tenant import TenantFactory

WIDGET_URL = "https://widget.example.test/embed.js"


@pytest.fixture()
def service() -> DomainService:
    return DomainService(widget_url=WIDGET_URL)


@pytest.fixture()
def tenant(session):
    t = TenantFactory()
    session.commit()
    return t


# ---------------------------------------------------------------------------
# add / list / delete
# ---------------------------------------------------------------------------
def test_add_domain_normalizes_and_starts_pending(service, tenant, session):
    result = service.add_domain(tenant.id, "https://WWW.Shop.Example.com/pricing")

    assert result.ok, result.message
    out = result.value
    assert out.hostname == "shop.example.com"
    assert out.status == DomainStatus.PENDING.value
    assert out.is_verified is False
    assert out.verification_attempts == 0
    assert session.get(DomainClaim, out.id).tenant_id == tenant.id


@pytest.mark.parametrize("raw", ["", "   ", "not a host", "intranet"])
def test_add_domain_rejects_unusable_hostnames(service, tenant, raw):
    result = service.add_domain(tenant.id, raw)
    assert result.error is ErrorKind.VALIDATION
    assert result.message == INVALID_HOSTNAME


def test_add_domain_conflicts_within_tenant_only(service, tenant, session):
    assert service.add_domain(tenant.id, "example.com").ok

    again = service.add_domain(tenant.id, "http://www.example.com/")
    assert again.error is ErrorKind.CONFLICT
    assert again.message == DOMAIN_TAKEN

    other = TenantFactory()
    session.commit()
    assert service.add_domain(other.id, "example.com").ok


def test_list_domains_is_scoped_to_tenant(service, tenant, session):
    mine = DomainClaimFactory(tenant=tenant)
    DomainClaimFactory()
    session.commit()

    listed = service.list_domains(tenant.id).value
    assert [d.id for d in listed] == [mine.id]


def test_delete_domain_hides_foreign_claims(service, tenant, session):
    foreign = DomainClaimFactory()
    own = DomainClaimFactory(tenant=tenant)
    session.commit()

    assert service.delete_domain(tenant.id, foreign.id).error is ErrorKind.NOT_FOUND
    assert service.delete_domain(tenant.id, own.id).ok
    session.expire_all()
    assert session.get(DomainClaim, own.id) is None
    assert session.get(DomainClaim, foreign.id) is not None


# ---------------------------------------------------------------------------
# Verification instructions
# ---------------------------------------------------------------------------
def test_verification_instructions(service, tenant, session):
    claim = DomainClaimFactory(tenant=tenant, hostname="docs.example.com")
    session.commit()

    out = service.verification_instructions(tenant.id, claim.id).value
    assert out.record_type == "TXT"
    assert out.record_name == "docs.example.com"
    assert out.record_value == claim.verification_code
    assert out.status == "PENDING"

    other = TenantFactory()
    session.commit()
    assert service.verification_instructions(other.id, claim.id).error is ErrorKind.NOT_FOUND


# ---------------------------------------------------------------------------
# Widget configuration
# ---------------------------------------------------------------------------
def test_widget_config_for_verified_domain(service, session):
    claim = DomainClaimFactory(
        hostname="help.example.com", status=DomainStatus.VERIFIED, is_verified=True
    )
    session.commit()

    out = service.widget_config("https://www.help.example.com/contact").value
    assert out.domain_id == claim.id
    assert out.api_key == claim.api_key
    assert out.widget_url == WIDGET_URL
    assert out.is_verified is True


def test_widget_config_withholds_key_until_verified(service, session):
    DomainClaimFactory(hostname="pending.example.com")
    DomainClaimFactory(
        hostname="odd.example.com", status=DomainStatus.VERIFIED, is_verified=False
    )
    session.commit()

    for host in ("pending.example.com", "odd.example.com"):
        result = service.widget_config(host)
        assert result.error is ErrorKind.FORBIDDEN
        assert result.message == DOMAIN_NOT_VERIFIED
        assert result.value is None


@pytest.mark.parametrize("raw", ["", "unknown.example.com"])
def test_widget_config_unknown_host(service, raw):
    assert service.widget_config(raw).error is ErrorKind.NOT_FOUND


def test_widget_config_prefers_the_verified_claim(service, session):
    DomainClaimFactory(hostname="shared.example.com")
    verified = DomainClaimFactory(
        hostname="shared.example.com", status=DomainStatus.VERIFIED, is_verified=True
    )
    session.commit()

    assert service.widget_config("shared.example.com").value.domain_id == verified.id
