"""Wire the domain verification scheduler into the Flask app."""

from __future__ import annotations

import atexit
import logging

from flask import Flask, current_app

from supportdesk.core.extensions import get_redis
from supportdesk.infra.dns.dnspython_resolver import DnsPythonTxtResolver
from supportdesk.infra.redis.redis_lock_coordinator import RedisLockCoordinator
from supportdesk.services._shared.ports import NoopCoordinator, SchedulerCoordinator
from supportdesk.services.domains.dto import VerificationConfig
from supportdesk.services.domains.scheduler import DomainVerificationScheduler

log = logging.getLogger(__name__)

EXTENSION_KEY = "domain_verification"


def build_scheduler(app: Flask) -> DomainVerificationScheduler:
    """Compose a scheduler from the app's configuration."""
    config = VerificationConfig.from_mapping(app.config)
    coordinator: SchedulerCoordinator = NoopCoordinator()
    if app.config.get("REDIS_URL"):
        # Lock outlives a full tick of timed-out lookups.
        worst_tick = int(config.batch_size * config.dns_timeout_seconds) + 60
        ttl = max(config.interval_seconds, worst_tick)
        coordinator = RedisLockCoordinator(get_redis(), ttl_seconds=ttl)
    return DomainVerificationScheduler(
        resolver=DnsPythonTxtResolver(timeout=config.dns_timeout_seconds),
        config=config,
        coordinator=coordinator,
        app=app,
    )


def init_app(app: Flask) -> DomainVerificationScheduler:
    """
    Create the scheduler and start it when enabled.

    The scheduler is always created so ``flask domains verify-pending`` can
    run a tick on demand; the background thread only starts when
    ``DOMAIN_VERIFICATION_ENABLED`` is set and the app is not under test.
    """
    scheduler = build_scheduler(app)
    app.extensions[EXTENSION_KEY] = scheduler

    enabled = bool(app.config.get("DOMAIN_VERIFICATION_ENABLED"))
    log.info(
        "domains.scheduler.init: enabled=%s interval_seconds=%s batch_size=%s",
        enabled,
        scheduler.config.interval_seconds,
        scheduler.config.batch_size,
    )
    if enabled and not app.testing:
        scheduler.start()
        atexit.register(scheduler.stop, 5)
    return scheduler


def get_scheduler() -> DomainVerificationScheduler:
    """Return the current app's scheduler."""
    scheduler = current_app.extensions.get(EXTENSION_KEY)
    if scheduler is None:
        raise RuntimeError("Domain verification is not initialized. Call init_app() first.")
    return scheduler
