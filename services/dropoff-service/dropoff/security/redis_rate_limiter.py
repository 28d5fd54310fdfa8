"""Redis-backed sliding window rate limiter shared by all service replicas."""

from __future__ import annotations

import math
import time
from typing import Final

from redis import Redis
from redis.exceptions import ResponseError

from .rate_limiter import RateLimitDecision


class RedisRateLimiter:
    """Sliding window over a sorted set of hit timestamps (milliseconds) per key."""

    # returns {1, 0} when admitted, {0, ms until the oldest hit leaves the window} otherwise
    _LUA_SCRIPT: Final[str] = """
    local key = KEYS[1]
    local window_ms = tonumber(ARGV[1])
    local max_requests = tonumber(ARGV[2])
    local now_ms = tonumber(ARGV[3])

    redis.call('ZREMRANGEBYSCORE', key, 0, now_ms - window_ms)
    if redis.call('ZCARD', key) >= max_requests then
        local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
        return {0, tonumber(oldest[2]) + window_ms - now_ms}
    end
    local seq = redis.call('INCR', key .. ':seq')
    redis.call('PEXPIRE', key .. ':seq', window_ms)
    redis.call('ZADD', key, now_ms, now_ms .. ':' .. seq)
    redis.call('PEXPIRE', key, window_ms)
    return {1, 0}
    """

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        key_prefix: str = "dropoff:rate",
    ) -> None:
        self._client = client
        self._max_requests = max_requests
        self._window_ms = window_seconds * 1000
        self._key_prefix = key_prefix
        self._script = client.register_script(self._LUA_SCRIPT)

    def peek(self, key: str) -> RateLimitDecision:
        """Decide without recording a hit; ``check`` still has the final say."""
        now_ms = int(time.time() * 1000)
        redis_key = f"{self._key_prefix}:{key}"
        oldest = self._client.zrangebyscore(
            redis_key, now_ms - self._window_ms + 1, "+inf", start=0, num=1, withscores=True
        )
        count = self._client.zcount(redis_key, now_ms - self._window_ms + 1, "+inf")
        if count >= self._max_requests and oldest:
            return self._decision(False, int(oldest[0][1]) + self._window_ms - now_ms)
        return self._decision(True, 0)

    def check(self, key: str) -> RateLimitDecision:
        now_ms = int(time.time() * 1000)
        redis_key = f"{self._key_prefix}:{key}"
        try:
            allowed, wait_ms = self._script(
                keys=[redis_key], args=[self._window_ms, self._max_requests, now_ms]
            )
        except ResponseError as exc:
            message = str(exc).lower()
            if "unknown command" in message and "eval" in message:
                return self._check_without_lua(redis_key, now_ms)
            raise
        return self._decision(int(allowed) == 1, int(wait_ms))

    def _check_without_lua(self, redis_key: str, now_ms: int) -> RateLimitDecision:
        """Same algorithm issued as individual commands, for servers without scripting."""
        self._client.zremrangebyscore(redis_key, 0, now_ms - self._window_ms)
        if self._client.zcard(redis_key) >= self._max_requests:
            oldest = self._client.zrange(redis_key, 0, 0, withscores=True)
            wait_ms = int(oldest[0][1]) + self._window_ms - now_ms if oldest else self._window_ms
            return self._decision(False, wait_ms)
        seq = self._client.incr(f"{redis_key}:seq")
        self._client.pexpire(f"{redis_key}:seq", self._window_ms)
        self._client.zadd(redis_key, {f"{now_ms}:{seq}": now_ms})
        self._client.pexpire(redis_key, self._window_ms)
        return self._decision(True, 0)

    @staticmethod
    def _decision(allowed: bool, wait_ms: int) -> RateLimitDecision:
        if allowed:
            return RateLimitDecision(allowed=True)
        return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(wait_ms / 1000)))
