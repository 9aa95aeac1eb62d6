"""Unit of Work contract shared by the services and the verification worker."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from supportdesk.repositories.domain import DomainClaimRepository
    from supportdesk.repositories.refresh_token import RefreshTokenRepository
    from supportdesk.repositories.tenant import TenantRepository
    from supportdesk.repositories.user import UserRepository


class UnitOfWork(ABC):
    """
    One transaction spanning every repository a use-case touches.

    Leaving the ``with`` block normally commits; leaving it with an exception
    rolls back. Repositories are bound on ``__enter__`` and share the
    transaction.
    """

    users: UserRepository
    tenants: TenantRepository
    refresh_tokens: RefreshTokenRepository
    domains: DomainClaimRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork:
        """Open (or join) the transaction and bind the repositories."""

    @abstractmethod
    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Commit on success, roll back when ``exc`` is set."""

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
