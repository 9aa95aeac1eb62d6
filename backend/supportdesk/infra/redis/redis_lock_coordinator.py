# supportdesk/infra/redis/redis_lock_coordinator.py
from __future__ import annotations

import logging
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from supportdesk.services._shared.ports import SchedulerCoordinator

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisLockCoordinator(SchedulerCoordinator):
    """
    Lets one process at a time run a scheduled tick, using a Redis lock.

    The lock is a plain key set with ``NX`` and an expiry, holding a random
    owner token; a crashed holder releases it by expiring.

    :param r: A Redis client (already connected).
    :param ttl_seconds: Lock expiry; must exceed the longest tick.
    :param prefix: Key namespace.
    """

    r: redis.Redis
    ttl_seconds: int = 600
    prefix: str = "lock:"

    def _k(self, name: str) -> str:
        return f"{self.prefix}{name}"

    @contextmanager
    def acquire(self, name: str) -> Iterator[bool]:
        key = self._k(name)
        token = secrets.token_hex(16)
        try:
            acquired = bool(self.r.set(key, token, nx=True, ex=max(1, int(self.ttl_seconds))))
        except RedisError:
            log.exception("scheduler.lock.unavailable: key=%s", key)
            acquired = False
        try:
            yield acquired
        finally:
            if acquired:
                self._release(key, token)

    def _release(self, key: str, token: str) -> None:
        """Delete ``key`` only while it still holds ``token``."""
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    current = p.get(key)
                    if isinstance(current, bytes):
                        current = current.decode()
                    if current != token:
                        p.unwatch()
                        log.warning("scheduler.lock.lost: key=%s", key)
                        return
                    p.multi()
                    p.delete(key)
                    p.execute()
                    return
            except redis.WatchError:
                # Key touched between WATCH and EXEC; re-check ownership.
                continue
            except RedisError:
                log.exception("scheduler.lock.release_failed: key=%s", key)
                return
