"""Shared base class for application services."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from supportdesk.core.clock import utcnow
from supportdesk.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Own the clock so tests can pin "now".

    Notes
    -----
    Services never touch the global session directly; they always go through
    a Unit of Work.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        """
        :param clock: Zero-argument callable returning an aware UTC datetime.
        """
        self._clock = clock or utcnow

    def now(self) -> datetime:
        return self._clock()

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """Create a read-write Unit of Work."""
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """Create a read-only Unit of Work."""
        return SQLAlchemyReadOnlyUnitOfWork()
