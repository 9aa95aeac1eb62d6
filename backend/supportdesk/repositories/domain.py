"""SQLAlchemy adapter for the domain claim store port."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import cast

from sqlalchemy import or_, select, update

from supportdesk.models.domain import DomainClaim, DomainStatus
from supportdesk.repositories.base import BaseRepository

log = logging.getLogger(__name__)


class DomainClaimRepository(BaseRepository[DomainClaim]):
    """Domain claims plus the due-work query used by the verification worker.

    Implements :class:`~supportdesk.services._shared.ports.DomainClaimStore`.
    """

    model = DomainClaim

    # ------------------------------ Port surface ------------------------------

    def insert(self, claim: DomainClaim) -> DomainClaim:
        return self.add(claim)

    def find_due_pending(self, batch_size: int, now: datetime) -> list[DomainClaim]:
        """
        Select pending, unverified claims that are eligible for a check.

        Claims never attempted come first, then the least recently attempted,
        then the oldest; ``id`` breaks remaining ties.

        :param batch_size: Maximum number of claims to return.
        :param now: Claims whose next attempt is later than this are skipped.
        """
        stmt = (
            select(DomainClaim)
            .where(
                DomainClaim.status == DomainStatus.PENDING,
                DomainClaim.is_verified.is_(False),
                or_(
                    DomainClaim.next_verification_attempt_at.is_(None),
                    DomainClaim.next_verification_attempt_at <= now,
                ),
            )
            .order_by(
                DomainClaim.last_verification_attempt_at.asc().nulls_first(),
                DomainClaim.created_at.asc(),
                DomainClaim.id.asc(),
            )
            .limit(int(batch_size))
        )
        return list(self.session.execute(stmt).scalars().all())

    def update(self, claims: Iterable[DomainClaim]) -> None:
        """
        Write each claim's verification state with its own ``UPDATE``.

        The claims are detached first so the commit never flushes them as ORM
        objects. A claim deleted while the tick ran matches no row and is
        skipped; the rest of the batch is still written.
        """
        staged = []
        for claim in claims:
            staged.append((claim.id, self._verification_state(claim)))
            if claim in self.session:
                self.session.expunge(claim)
        for claim_id, values in staged:
            stmt = (
                update(DomainClaim)
                .where(DomainClaim.id == claim_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if not self.session.execute(stmt).rowcount:
                log.info("domains.verification.vanished", extra={"domain_id": claim_id})

    @staticmethod
    def _verification_state(claim: DomainClaim) -> dict[str, object]:
        return {
            "status": claim.status,
            "is_verified": claim.is_verified,
            "verified_at": claim.verified_at,
            "verification_attempts": claim.verification_attempts,
            "last_verification_attempt_at": claim.last_verification_attempt_at,
            "last_verification_error": claim.last_verification_error,
            "next_verification_attempt_at": claim.next_verification_attempt_at,
        }

    # ---------------------------- Registry helpers ----------------------------

    def list_for_tenant(self, tenant_id: int) -> list[DomainClaim]:
        return self.list(
            filters={"tenant_id": tenant_id}, order_by=[DomainClaim.created_at.desc()]
        )

    def get_for_tenant(self, tenant_id: int, claim_id: int) -> DomainClaim | None:
        return self.find_one(tenant_id=tenant_id, id=claim_id)

    def find_by_hostname(self, hostname: str) -> DomainClaim | None:
        """Return the most usable claim for a hostname (verified claims first)."""
        stmt = (
            select(DomainClaim)
            .where(DomainClaim.hostname == hostname)
            .order_by(DomainClaim.is_verified.desc(), DomainClaim.id.asc())
            .limit(1)
        )
        return cast(DomainClaim | None, self.session.execute(stmt).scalars().first())
