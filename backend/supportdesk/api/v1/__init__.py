"""Version 1 of the API: health, dashboard auth, domain registry, widget."""

from __future__ import annotations

from flask import Blueprint

from .auth import bp as auth_bp
from .domains import bp as domains_bp
from .health import bp as health_bp
from .widget import bp as widget_bp

API_VERSION = "v1"

# (blueprint, prefix relative to /api/v1)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),
    (auth_bp, "/auth"),
    (domains_bp, "/domains"),
    (widget_bp, "/widget"),
]
