"""JSON logging for the API and the verification worker.

Every record leaves the process as a single JSON line on stdout. Records
emitted while a request is being served carry that request's correlation id,
which is also echoed back in the ``X-Request-ID`` response header.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, Response, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
# Accepted from upstream proxies, first match wins.
INBOUND_ID_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")
MAX_INBOUND_ID_LENGTH = 128
ENVIRON_KEY = "supportdesk.request_id"

# Structured fields copied from ``extra=`` into the JSON line; anything else
# attached to a record is dropped so secrets never reach the log.
EXTRA_KEYS = (
    "endpoint",
    "elapsed_ms",
    "user_id",
    "tenant_id",
    "domain_id",
    "reason",
    "revoked",
    "processed",
)

# Third-party loggers that are too chatty at INFO.
QUIET_LOGGERS = ("werkzeug", "urllib3", "flask_limiter")


class JSONFormatter(logging.Formatter):
    """Serialize a record into one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "time": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(
            {key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)}
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def _inbound_request_id() -> str | None:
    for header in INBOUND_ID_HEADERS:
        value = (request.headers.get(header) or "").strip()
        if value and len(value) <= MAX_INBOUND_ID_LENGTH:
            return value
    return None


def ensure_request_id() -> str:
    """
    Correlation id of the current request.

    Reuses an id sent by the caller or a proxy, otherwise mints one; the value
    is kept in the request's WSGI environ, so it never outlives the request
    even when an outer app context stays pushed. Outside a request every call
    returns a fresh id.
    """
    if not has_request_context():
        return uuid4().hex
    request_id = request.environ.get(ENVIRON_KEY)
    if request_id is None:
        request_id = _inbound_request_id() or uuid4().hex
        request.environ[ENVIRON_KEY] = request_id
    return request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Route the root logger to stdout as JSON at ``level``."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def init_app(app: Flask) -> None:
    """Seed the correlation id per request and echo it on the response."""
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _bind_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response
