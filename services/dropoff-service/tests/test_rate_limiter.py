"""Tests for the in-memory and Redis-backed sliding window rate limiters."""

from __future__ import annotations

import time
from dataclasses import replace

import fakeredis
import pytest

from dropoff.security.rate_limiter import InMemoryRateLimiter, build_rate_limiter
from dropoff.security.redis_rate_limiter import RedisRateLimiter


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


def test_memory_limiter_blocks_excess_with_retry_hint():
    limiter = InMemoryRateLimiter(max_requests=2, window_seconds=30)

    assert limiter.check("login:1.2.3.4").allowed
    assert limiter.check("login:1.2.3.4").allowed
    blocked = limiter.check("login:1.2.3.4")

    assert not blocked.allowed
    assert 1 <= blocked.retry_after <= 30


def test_memory_limiter_tracks_keys_separately():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=30)

    assert limiter.check("login:a").allowed
    assert limiter.check("login:b").allowed
    assert not limiter.check("login:a").allowed


def test_memory_limiter_expires_entries():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=1)
    assert limiter.check("key").allowed
    assert not limiter.check("key").allowed
    time.sleep(1.1)
    assert limiter.check("key").allowed


def test_memory_limiter_forgets_idle_keys():
    limiter = InMemoryRateLimiter(max_requests=5, window_seconds=1)
    for index in range(10_000):
        assert limiter.check(f"login-email:{index}").allowed
    assert len(limiter) == 10_000

    time.sleep(1.1)
    assert limiter.check("login-email:fresh").allowed

    assert len(limiter) == 1


def test_memory_limiter_peek_does_not_record():
    limiter = InMemoryRateLimiter(max_requests=1, window_seconds=30)

    assert limiter.peek("login:a").allowed
    assert limiter.peek("login:a").allowed
    assert limiter.check("login:a").allowed
    assert not limiter.peek("login:a").allowed
    assert len(limiter) == 1


def test_redis_rate_limiter_allows_within_threshold(redis_client):
    limiter = RedisRateLimiter(redis_client, max_requests=3, window_seconds=1, key_prefix="test")
    key = "register:10.0.0.1"
    assert limiter.check(key).allowed
    assert limiter.check(key).allowed
    assert limiter.check(key).allowed


def test_redis_rate_limiter_blocks_excess(redis_client):
    limiter = RedisRateLimiter(redis_client, max_requests=2, window_seconds=5, key_prefix="test")
    key = "register:10.0.0.1"
    assert limiter.check(key).allowed
    assert limiter.check(key).allowed
    blocked = limiter.check(key)
    assert not blocked.allowed
    assert 1 <= blocked.retry_after <= 5


def test_redis_rate_limiter_expires_entries(redis_client):
    limiter = RedisRateLimiter(redis_client, max_requests=1, window_seconds=1, key_prefix="test")
    key = "register:10.0.0.1"
    assert limiter.check(key).allowed
    assert not limiter.check(key).allowed
    time.sleep(1.1)
    assert limiter.check(key).allowed


def test_redis_rate_limiter_peek_does_not_record(redis_client):
    limiter = RedisRateLimiter(redis_client, max_requests=1, window_seconds=30, key_prefix="test")
    key = "login:10.0.0.1"

    assert limiter.peek(key).allowed
    assert limiter.peek(key).allowed
    assert limiter.check(key).allowed
    blocked = limiter.peek(key)

    assert not blocked.allowed
    assert 1 <= blocked.retry_after <= 30


def test_builder_falls_back_to_memory_when_redis_unreachable(settings):
    limiter = build_rate_limiter(
        replace(settings, rate_limit_backend="redis", redis_url="redis://127.0.0.1:1/0")
    )

    assert isinstance(limiter, InMemoryRateLimiter)
