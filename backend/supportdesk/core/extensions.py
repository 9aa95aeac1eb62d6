"""Extension singletons shared across the app, plus their wiring."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

log = logging.getLogger(__name__)

# Deterministic constraint names keep Alembic diffs stable across backends.
NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
# Storage comes from RATELIMIT_STORAGE_URI (Redis when configured).
limiter = Limiter(key_func=get_remote_address)

redis_client: redis.Redis | None = None


def init_app(app: Flask) -> None:
    """
    Bind the database, migrations, JWT, rate limiting and Redis to ``app``.

    Importing :mod:`supportdesk.models` here registers every table on the
    metadata before Alembic or ``create_all`` looks at it.
    """
    db.init_app(app)
    from supportdesk import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    _init_redis(app)


def _init_redis(app: Flask) -> None:
    """Connect to ``REDIS_URL`` when set; fail fast if it is unreachable."""
    global redis_client

    url = app.config.get("REDIS_URL")
    if not url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    client = redis.Redis.from_url(
        url, socket_timeout=float(app.config.get("REDIS_SOCKET_TIMEOUT", 5))
    )
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {url!r}") from exc
    redis_client = client
    app.extensions["redis_client"] = client
    log.info("redis.connected")


def get_redis() -> redis.Redis:
    """Return the connected Redis client or raise when Redis is not configured."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client
