"""Tenant domain registry endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from supportdesk.api.deps import (
    current_tenant_id,
    get_domain_service,
    json_response,
    require_auth,
    timing,
    unwrap_result,
)
from supportdesk.schemas import DomainCreateSchema, DomainSchema, VerificationInstructionsSchema

bp = Blueprint("domains", __name__, url_prefix="/domains")

create_schema = DomainCreateSchema()
domain_schema = DomainSchema()
domains_schema = DomainSchema(many=True)
instructions_schema = VerificationInstructionsSchema()


@bp.get("")
@require_auth
@timing
def list_domains():
    """List the tenant's domain claims, newest first."""

    domains = unwrap_result(get_domain_service().list_domains(current_tenant_id()))
    return json_response({"data": domains_schema.dump(domains)})


@bp.post("")
@require_auth
@timing
def add_domain():
    """Claim a hostname; verification starts in the background."""

    data = create_schema.load(request.get_json(silent=True) or {})
    domain = unwrap_result(get_domain_service().add_domain(current_tenant_id(), data["domain"]))
    return json_response({"data": domain_schema.dump(domain)}, status=201)


@bp.get("/<int:domain_id>/verification")
@require_auth
@timing
def verification_instructions(domain_id: int):
    """Return the TXT record to publish and the current verification state."""

    out = unwrap_result(
        get_domain_service().verification_instructions(current_tenant_id(), domain_id)
    )
    return json_response({"data": instructions_schema.dump(out)})


@bp.delete("/<int:domain_id>")
@require_auth
@timing
def delete_domain(domain_id: int):
    unwrap_result(get_domain_service().delete_domain(current_tenant_id(), domain_id))
    return "", 204
