"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    Client addresses stamped on refresh credentials come from
    ``request.remote_addr``; behind a load balancer that value is only right
    once ``X-Forwarded-For`` is trusted for ``PROXY_HOPS`` hops.
    """
    if app.config.get("USE_PROXYFIX", True):
        hops = int(app.config.get("PROXY_HOPS", 1))
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops)
