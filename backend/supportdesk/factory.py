"""Application factory: configuration, extensions, API, CLI and the worker."""

from __future__ import annotations

import logging

from flask import Flask

from supportdesk.core.config import BaseConfig, ensure_signing_config, get_config
from supportdesk.core.logger import configure_logging

log = logging.getLogger(__name__)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """
    Build the support desk application.

    :param config: Config object or import path; inferred from ``APP_ENV``
        when omitted.
    :param instance_relative_config: Also read ``instance/<filename>``.
    :param instance_config_filename: Optional per-deployment override file.
    :raises RuntimeError: When the JWT signing configuration is unusable.
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)
    app.config.from_object(config if config is not None else get_config())
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    ensure_signing_config(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from supportdesk import cli
    from supportdesk.api import init_app as init_api
    from supportdesk.core import cors, errors, extensions, proxy
    from supportdesk.core.logger import init_app as init_logging
    from supportdesk.services.domains import lifecycle

    # ProxyFix wraps the WSGI app first; the verification scheduler starts last.
    for init in (
        proxy.init_app,
        extensions.init_app,
        init_logging,
        cors.init_app,
        init_api,
        errors.init_app,
        cli.init_app,
        lifecycle.init_app,
    ):
        init(app)

    log.info("app.created: testing=%s", app.testing)
    return app
