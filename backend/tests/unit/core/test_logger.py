"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from supportdesk.core.logger import JSONFormatter, configure_logging


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("DEBUG")

    # Assert
    assert logging.getLogger().level == logging.DEBUG
    configure_logging("WARNING")


def test_json_formatter_includes_whitelisted_extras() -> None:
    record = logging.LogRecord(
        "supportdesk.test", logging.INFO, __file__, 1, "auth.login.succeeded", None, None
    )
    record.user_id = 7
    record.password = "never-rendered"
    record.request_id = None

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "auth.login.succeeded"
    assert payload["user_id"] == 7
    assert "password" not in payload


def test_request_id_is_echoed_on_responses(client) -> None:
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_each_request_gets_its_own_id(client) -> None:
    first = client.get("/api/v1/health", headers={"X-Request-ID": "req-first"})
    second = client.get("/api/v1/health", headers={"X-Request-ID": "req-second"})
    minted_a = client.get("/api/v1/health")
    minted_b = client.get("/api/v1/health")

    assert first.headers["X-Request-ID"] == "req-first"
    assert second.headers["X-Request-ID"] == "req-second"
    assert minted_a.headers["X-Request-ID"] != minted_b.headers["X-Request-ID"]
    assert "req-" not in minted_a.headers["X-Request-ID"]
