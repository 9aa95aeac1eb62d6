"""Factory Boy base wired to the per-test SQLAlchemy session."""

from __future__ import annotations

import factory

_session = None


def bind_session(session) -> None:
    """Set (or clear with ``None``) the session factories persist into."""
    global _session
    _session = session


def current_session():
    if _session is None:
        raise RuntimeError("No session bound for factories; request the 'session' fixture.")
    return _session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flush on create so ids exist; tests decide when to commit."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "flush"
