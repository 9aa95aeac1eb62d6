"""End-to-end tests for the public widget configuration lookup."""

from __future__ import annotations

from supportdesk.models.domain import DomainStatus
from tests.factories.domain import DomainClaimFactory
from tests.helpers.http import assert_problem

URL = "/api/v1/widget/config"


def test_verified_domain_gets_api_key(client, session, app):
    claim = DomainClaimFactory(
        hostname="help.example.com", status=DomainStatus.VERIFIED, is_verified=True
    )
    session.commit()

    resp = client.get(URL, query_string={"domain": "https://www.help.example.com/faq"})

    assert resp.status_code == 200, resp.get_data(as_text=True)
    data = resp.get_json()["data"]
    assert data["apiKey"] == claim.api_key
    assert data["domainId"] == claim.id
    assert data["widgetUrl"] == app.config["WIDGET_URL"]
    assert data["isVerified"] is True


def test_pending_domain_is_forbidden(client, session):
    claim = DomainClaimFactory(hostname="pending.example.com")
    session.commit()

    body = assert_problem(client.get(URL, query_string={"domain": claim.hostname}), 403)
    assert claim.api_key not in str(body)


def test_unknown_or_missing_domain_is_not_found(client):
    assert_problem(client.get(URL, query_string={"domain": "nobody.example.com"}), 404)
    assert_problem(client.get(URL), 404, "not_found")


def test_falls_back_to_origin_then_referer(client, session):
    DomainClaimFactory(
        hostname="shop.example.com", status=DomainStatus.VERIFIED, is_verified=True
    )
    session.commit()

    by_origin = client.get(URL, headers={"Origin": "https://shop.example.com"})
    assert by_origin.status_code == 200

    by_referer = client.get(URL, headers={"Referer": "https://www.shop.example.com/cart"})
    assert by_referer.status_code == 200
