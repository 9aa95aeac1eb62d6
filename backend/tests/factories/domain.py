"""Factory Boy definition for :class:`supportdesk.models.domain.DomainClaim`."""

from __future__ import annotations

import factory
from supportdesk.models.domain import DomainClaim, DomainStatus
from supportdesk.services.domains.policy import generate_api_key, generate_verification_code
from tests.factories import BaseFactory
from tests.factories.tenant import TenantFactory


class DomainClaimFactory(BaseFactory):
    """Build persisted pending claims; override status fields for other states."""

    class Meta:
        model = DomainClaim

    id = None
    tenant = factory.SubFactory(TenantFactory)
    hostname = factory.Sequence(lambda n: f"site{n}.example.com")
    verification_code = factory.LazyFunction(generate_verification_code)
    api_key = factory.LazyFunction(generate_api_key)
    status = DomainStatus.PENDING
    is_verified = False
    verification_attempts = 0
