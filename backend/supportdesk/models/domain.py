"""Domain claim model: a tenant's assertion of ownership over a hostname."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supportdesk.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .tenant import Tenant

LAST_ERROR_MAX_LENGTH = 500


class DomainStatus(str, enum.Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"
    SUSPENDED = "SUSPENDED"


class DomainClaim(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Claimed hostname plus its DNS verification bookkeeping.

    ``is_verified`` implies ``status == VERIFIED``; the API key is only handed
    to public callers when both agree. ``verification_attempts`` never
    decreases and ``FAILED`` is terminal.
    """

    __tablename__ = "domains"

    tenant_id: Mapped[int] = mapped_column(
        ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    hostname: Mapped[str] = mapped_column(String(253), nullable=False)
    verification_code: Mapped[str] = mapped_column(String(64), nullable=False)
    api_key: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[DomainStatus] = mapped_column(
        Enum(DomainStatus, name="domain_status", native_enum=False),
        nullable=False,
        default=DomainStatus.PENDING,
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    verification_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_verification_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    last_verification_error: Mapped[str | None] = mapped_column(String(LAST_ERROR_MAX_LENGTH))
    next_verification_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "hostname", name="uq_domains_tenant_hostname"),
        UniqueConstraint("api_key", name="uq_domains_api_key"),
        Index("ix_domains_hostname", "hostname"),
        Index("ix_domains_due", "status", "is_verified", "next_verification_attempt_at"),
    )

    tenant: Mapped[Tenant] = relationship("Tenant", back_populates="domains")

    @property
    def is_usable(self) -> bool:
        """Whether secrets tied to this claim may be released."""
        return self.is_verified and self.status == DomainStatus.VERIFIED
