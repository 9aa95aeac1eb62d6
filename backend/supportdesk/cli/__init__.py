"""``flask`` sub-commands shipped with the app."""

from __future__ import annotations

from flask import Flask

from .domains import domains_cli


def init_app(app: Flask) -> None:
    """Expose ``flask domains ...`` (verification ticks and the worker loop)."""
    app.cli.add_command(domains_cli)
