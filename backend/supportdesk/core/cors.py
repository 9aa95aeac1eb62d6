"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. Dashboard routes honour ``CORS_ORIGINS``; the public widget
        routes are embedded on customer sites and accept any origin without
        credentials.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]
    prefix = app.config.get("API_BASE_PREFIX", "/api")

    CORS(
        app,
        resources={
            rf"{prefix}/v1/widget/*": {"origins": "*", "supports_credentials": False},
            rf"{prefix}/*": {
                "origins": "*" if wildcard else origins,
                "supports_credentials": not wildcard,
            },
        },
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
