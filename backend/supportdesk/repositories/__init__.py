from supportdesk.repositories.domain import DomainClaimRepository
from supportdesk.repositories.refresh_token import RefreshTokenRepository
from supportdesk.repositories.tenant import TenantRepository
from supportdesk.repositories.user import UserRepository

__all__ = [
    "DomainClaimRepository",
    "RefreshTokenRepository",
    "TenantRepository",
    "UserRepository",
]
