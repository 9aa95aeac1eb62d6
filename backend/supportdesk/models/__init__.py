from supportdesk.models.domain import DomainClaim, DomainStatus
from supportdesk.models.refresh_token import RefreshToken
from supportdesk.models.tenant import SubscriptionPlan, Tenant, TenantStatus
from supportdesk.models.user import User, UserRole

__all__ = [
    "DomainClaim",
    "DomainStatus",
    "RefreshToken",
    "SubscriptionPlan",
    "Tenant",
    "TenantStatus",
    "User",
    "UserRole",
]
