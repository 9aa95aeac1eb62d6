"""Liveness plus a shallow look at the database, Redis and the DNS worker."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from supportdesk.api.deps import json_response, timing
from supportdesk.core.extensions import db, get_redis
from supportdesk.services.domains.lifecycle import EXTENSION_KEY

bp = Blueprint("health", __name__)
log = logging.getLogger(__name__)


def _database() -> str:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        log.exception("health.db_error")
        return "fail"
    return "ok"


def _redis() -> str:
    if not current_app.config.get("REDIS_URL"):
        return "disabled"
    try:
        get_redis().ping()
    except RedisError:
        log.exception("health.redis_error")
        return "fail"
    return "ok"


@bp.get("/health")
@timing
def healthcheck():
    """Always 200 while the process serves requests; components report separately."""
    scheduler = current_app.extensions.get(EXTENSION_KEY)
    return json_response(
        {
            "status": "ok",
            "db": _database(),
            "redis": _redis(),
            "domainVerification": "running" if scheduler and scheduler.is_running else "idle",
            "version": current_app.config["APP_VERSION"],
        }
    )
