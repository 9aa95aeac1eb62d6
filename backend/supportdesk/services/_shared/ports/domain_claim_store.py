from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol

from supportdesk.core.clock import ensure_utc
from supportdesk.models.domain import DomainClaim, DomainStatus


class DomainClaimStore(Protocol):
    """Durable record of domain claims and their verification bookkeeping."""

    def insert(self, claim: DomainClaim) -> DomainClaim: ...

    def find_due_pending(self, batch_size: int, now: datetime) -> list[DomainClaim]:
        """
        Pending, unverified claims with no next attempt or one at/before ``now``.

        Ordered by last attempt (never-attempted first), then creation time.
        """

    def update(self, claims: Iterable[DomainClaim]) -> None:
        """Stage changes; they become durable in a single write by the caller."""


_EPOCH = datetime.min.replace(tzinfo=UTC)


class InMemoryDomainClaimStore(DomainClaimStore):
    """
    Process-local claim store mirroring the SQL ordering rules.

    ``writes`` counts :meth:`update` calls so tests can assert one write per
    batch.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, DomainClaim] = {}
        self._seq = 0
        self._lock = threading.Lock()
        self.writes = 0

    def insert(self, claim: DomainClaim) -> DomainClaim:
        with self._lock:
            self._seq += 1
            claim.id = self._seq
            self._by_id[claim.id] = claim
            return claim

    def get(self, claim_id: int) -> DomainClaim | None:
        return self._by_id.get(claim_id)

    def find_due_pending(self, batch_size: int, now: datetime) -> list[DomainClaim]:
        with self._lock:
            due = [
                c
                for c in self._by_id.values()
                if c.status == DomainStatus.PENDING
                and not c.is_verified
                and (
                    c.next_verification_attempt_at is None
                    or ensure_utc(c.next_verification_attempt_at) <= now
                )
            ]
        due.sort(
            key=lambda c: (
                c.last_verification_attempt_at is not None,
                ensure_utc(c.last_verification_attempt_at) or _EPOCH,
                ensure_utc(c.created_at) or _EPOCH,
                c.id,
            )
        )
        return due[: int(batch_size)]

    def update(self, claims: Iterable[DomainClaim]) -> None:
        with self._lock:
            for claim in claims:
                self._by_id[claim.id] = claim
            self.writes += 1
