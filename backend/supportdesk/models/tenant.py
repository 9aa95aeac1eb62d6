"""Tenant (customer organisation) model."""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from supportdesk.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .domain import DomainClaim
    from .user import User


class TenantStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"


class SubscriptionPlan(str, enum.Enum):
    FREE = "FREE"
    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"


class Tenant(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Organisation owning users and claimed domains.

    Deleting a tenant cascades to its users (and through them to their
    refresh credentials) and to its domain claims.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[TenantStatus] = mapped_column(
        Enum(TenantStatus, name="tenant_status", native_enum=False),
        nullable=False,
        default=TenantStatus.ACTIVE,
    )
    plan: Mapped[SubscriptionPlan] = mapped_column(
        Enum(SubscriptionPlan, name="subscription_plan", native_enum=False),
        nullable=False,
        default=SubscriptionPlan.FREE,
    )

    users: Mapped[list[User]] = relationship(
        "User",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    domains: Mapped[list[DomainClaim]] = relationship(
        "DomainClaim",
        back_populates="tenant",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        """Trim the company name and reject blanks."""
        v = (value or "").strip()
        if not v:
            raise ValueError("Company name is required.")
        return v
