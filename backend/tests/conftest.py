"""Shared fixtures: one app per run, one rolled-back transaction per test.

Services open their own units of work and call ``commit()``; against the
fixtures below those commits only release a SAVEPOINT, and the outer
transaction is rolled back when the test ends.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker
from supportdesk.core.config import TestingConfig
from supportdesk.core.extensions import db as _db
from supportdesk.factory import create_app


class TestConfig(TestingConfig):
    """Deterministic settings: in-memory SQLite, pinned JWT, no Redis, no worker."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-signing-key-with-at-least-32-bytes!"
    JWT_ALGORITHM = "HS256"
    JWT_ENCODE_ISSUER = JWT_DECODE_ISSUER = "supportdesk"
    JWT_ENCODE_AUDIENCE = JWT_DECODE_AUDIENCE = "supportdesk-dashboard"
    RATELIMIT_ENABLED = False
    REDIS_URL = None
    DOMAIN_VERIFICATION_ENABLED = False
    WIDGET_URL = "https://widget.example.test/embed.js"
    CORS_ORIGINS = "http://dashboard.example.test"
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """The application under test, built once per run."""
    for var in ("DATABASE_URL", "REDIS_URL"):
        os.environ.pop(var, None)
    return create_app(TestConfig, instance_relative_config=False)


@pytest.fixture(scope="session")
def db(app):
    """Create the schema and keep an app context pushed for the whole run."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Single connection shared by every test transaction."""
    conn = db.engine.connect()
    yield conn
    conn.close()


@pytest.fixture()
def session(db, connection):
    """
    Scoped session joined to an outer transaction plus a SAVEPOINT.

    ``db.session`` is swapped for this session so the app, the services and
    the factories all see the same rows. Whenever a SAVEPOINT ends (a service
    commit or rollback) a fresh one is opened.
    """
    outer = connection.begin()
    scoped = scoped_session(sessionmaker(bind=connection, autoflush=False))
    savepoint = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _reopen_savepoint(sess, trans):  # pragma: no cover
        nonlocal savepoint
        if trans.nested and not trans._parent.nested:
            savepoint = connection.begin_nested()

    app_session = db.session
    app_session.remove()
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = app_session
        outer.rollback()


@pytest.fixture()
def client(app, session):
    """Test client whose requests run on the transactional session."""
    return app.test_client()


@pytest.fixture(autouse=True)
def _factories_session(session):
    """Point every Factory Boy factory at the per-test session."""
    from tests.factories import bind_session

    bind_session(session)
    yield
    bind_session(None)
