"""Shared persistence helpers for the SQLAlchemy repositories.

Repositories never commit or roll back: a Unit of Work hands every repository
of a use-case the same session and owns the transaction.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import ColumnElement, Select, select
from sqlalchemy.orm import Session

from supportdesk.core.extensions import db

E = TypeVar("E")


class BaseRepository(Generic[E]):
    """
    Equality lookups and staged writes for one mapped model.

    Subclasses set ``model`` and add the queries their port needs.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session of the enclosing Unit of Work; defaults to the
            Flask-scoped session.
        """
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def _where(self, stmt: Select[Any], filters: Mapping[str, Any]) -> Select[Any]:
        for name, value in filters.items():
            stmt = stmt.where(getattr(self.model, name) == value)
        return stmt

    # -------------------------------- Reads ----------------------------------

    def get(self, entity_id: int) -> E | None:
        return self.session.get(self.model, entity_id)

    def find_one(self, **filters: Any) -> E | None:
        """First row matching every ``column=value`` filter, or ``None``."""
        stmt = self._where(select(self.model), filters).limit(1)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, **filters: Any) -> bool:
        stmt = select(self._where(select(self.model), filters).exists())
        return bool(self.session.execute(stmt).scalar())

    def list(
        self,
        *,
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[ColumnElement[Any]] = (),
        limit: int | None = None,
    ) -> list[E]:
        """
        Rows matching ``filters`` in ``order_by`` order.

        The primary key is appended as the final tiebreaker so pages are
        stable when timestamps collide.
        """
        stmt = self._where(select(self.model), filters or {})
        stmt = stmt.order_by(*order_by, getattr(self.model, "id").asc())
        if limit is not None:
            stmt = stmt.limit(int(limit))
        return cast(list[E], list(self.session.execute(stmt).scalars().all()))

    # -------------------------------- Writes ---------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.session.flush()
