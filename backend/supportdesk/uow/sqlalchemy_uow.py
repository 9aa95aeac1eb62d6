"""Units of Work over the Flask-SQLAlchemy scoped session."""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session, scoped_session

from supportdesk.core.extensions import db
from supportdesk.repositories import (
    DomainClaimRepository,
    RefreshTokenRepository,
    TenantRepository,
    UserRepository,
)
from supportdesk.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class _SessionBound(UnitOfWork):
    """Bind the four repositories to one session (the Flask-scoped one by default)."""

    def __init__(self, session: Session | scoped_session | None = None) -> None:
        self.session = session if session is not None else db.session
        self.tenants = TenantRepository(session=self.session)
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)
        self.domains = DomainClaimRepository(session=self.session)

    def _concrete_session(self) -> Session:
        # Event listeners attach to the thread's Session, not the registry.
        if isinstance(self.session, scoped_session):
            return self.session()
        return self.session

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyUnitOfWork(_SessionBound):
    """
    Read-write scope: commit on a clean exit, roll back when the block raises.

    Calling :meth:`rollback` inside the block discards everything staged so
    far; the exit commit then has nothing left to write.
    """

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            log.warning("uow.commit_failed", exc_info=True)
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()


class SQLAlchemyReadOnlyUnitOfWork(_SessionBound):
    """
    Read-only scope: any ORM flush raises and :meth:`commit` is refused.

    On exit the transaction is rolled back only when this scope opened it, so
    a caller's in-flight transaction survives a nested read.
    """

    def __init__(self, session: Session | scoped_session | None = None) -> None:
        super().__init__(session)
        self._opened_transaction = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._opened_transaction = not self._concrete_session().in_transaction()
        event.listen(self._concrete_session(), "before_flush", self._refuse_flush)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        target = self._concrete_session()
        if event.contains(target, "before_flush", self._refuse_flush):
            event.remove(target, "before_flush", self._refuse_flush)
        if self._opened_transaction:
            self.session.rollback()

    def commit(self) -> None:
        """:raises RuntimeError: always; this scope never writes."""
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    @staticmethod
    def _refuse_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only UnitOfWork: ORM flush blocked.")
