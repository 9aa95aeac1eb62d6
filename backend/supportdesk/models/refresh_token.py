"""Refresh credential model (stored by hash, never by raw secret)."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, cast

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supportdesk.core.clock import ensure_utc
from supportdesk.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User

# Revocation reasons recorded on ``revoked_reason``
REVOKED_ROTATED = "rotated"
REVOKED_LOGOUT = "logout"
REVOKED_CAP_EXCEEDED = "exceeded maximum active sessions"


class RefreshToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One long-lived session grant.

    Active means ``revoked_at IS NULL AND now < expires_at``. Rows are only
    ever updated to set revocation fields and the ``replaced_by_token_id``
    link to the rotation successor; they disappear only with their user.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by_ip: Mapped[str | None] = mapped_column(String(45))

    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    revoked_reason: Mapped[str | None] = mapped_column(String(100))
    revoked_by_ip: Mapped[str | None] = mapped_column(String(45))
    replaced_by_token_id: Mapped[int | None] = mapped_column(
        ForeignKey("refresh_tokens.id", name="fk_refresh_tokens_replaced_by", ondelete="SET NULL")
    )

    __table_args__ = (
        Index("uq_refresh_tokens_token_hash", "token_hash", unique=True),
        Index("ix_refresh_tokens_user_expires", "user_id", "expires_at"),
    )

    user: Mapped[User] = relationship("User", back_populates="refresh_tokens")

    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= cast(datetime, ensure_utc(self.expires_at))

    def is_active(self, now: datetime) -> bool:
        """Return ``True`` while the credential is neither revoked nor expired."""
        return not self.is_revoked() and not self.is_expired(now)
