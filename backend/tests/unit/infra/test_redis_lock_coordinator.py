"""Cross-process tick lock on Redis, exercised with fakeredis."""

from __future__ import annotations

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from supportdesk.infra.redis.redis_lock_coordinator import RedisLockCoordinator


@pytest.fixture()
def r():
    return fakeredis.FakeRedis()


def test_lock_is_exclusive_and_released(r):
    first = RedisLockCoordinator(r, ttl_seconds=30)
    second = RedisLockCoordinator(r, ttl_seconds=30)

    with first.acquire("tick") as got_first:
        assert got_first is True
        assert 0 < r.ttl("lock:tick") <= 30
        with second.acquire("tick") as got_second:
            assert got_second is False
        # The loser must not release the winner's lock.
        assert r.exists("lock:tick")

    assert not r.exists("lock:tick")
    with second.acquire("tick") as again:
        assert again is True


def test_expired_and_retaken_lock_is_left_alone(r):
    coordinator = RedisLockCoordinator(r, ttl_seconds=30)

    with coordinator.acquire("tick") as acquired:
        assert acquired
        # Simulate expiry followed by another instance taking the lock.
        r.set("lock:tick", "someone-else")

    assert r.get("lock:tick") == b"someone-else"


def test_redis_outage_means_not_acquired(r, monkeypatch):
    def boom(*args, **kwargs):
        raise RedisConnectionError("down")

    monkeypatch.setattr(r, "set", boom)
    with RedisLockCoordinator(r).acquire("tick") as acquired:
        assert acquired is False
