"""
supportdesk.services._shared.ports
==================================

Ports (hexagonal interfaces) between the services and infrastructure.

Modules
-------
- :mod:`token_issuer`:
    :class:`~.TokenIssuer`: access credential signing/decoding and refresh
    secret generation/hashing.
- :mod:`credential_store`:
    :class:`~.CredentialStore`: refresh credentials keyed by secret hash.
- :mod:`domain_claim_store`:
    :class:`~.DomainClaimStore`: domain claims and the due-work query.
- :mod:`dns_resolver`:
    :class:`~.TxtResolver`: DNS TXT lookups.
- :mod:`coordinator`:
    :class:`~.SchedulerCoordinator`: cross-process tick ownership.

Concrete adapters live under ``supportdesk.infra`` and
``supportdesk.repositories``; each module also ships an in-memory double.
"""

from __future__ import annotations

from .coordinator import NoopCoordinator, SchedulerCoordinator
from .credential_store import CredentialStore, InMemoryCredentialStore
from .dns_resolver import StaticTxtResolver, TxtResolver
from .domain_claim_store import DomainClaimStore, InMemoryDomainClaimStore
from .token_issuer import (
    AccessSubject,
    IssuedAccessToken,
    StubTokenIssuer,
    TokenIssuer,
    generate_refresh_secret,
    hash_refresh_secret,
)

__all__ = [
    "AccessSubject",
    "CredentialStore",
    "DomainClaimStore",
    "InMemoryCredentialStore",
    "InMemoryDomainClaimStore",
    "IssuedAccessToken",
    "NoopCoordinator",
    "SchedulerCoordinator",
    "StaticTxtResolver",
    "StubTokenIssuer",
    "TokenIssuer",
    "TxtResolver",
    "generate_refresh_secret",
    "hash_refresh_secret",
]
