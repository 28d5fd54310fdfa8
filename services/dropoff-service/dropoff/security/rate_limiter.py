"""Sliding-window rate limiting for the unauthenticated auth endpoints."""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, Protocol

from ..config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


class RateLimiter(Protocol):
    def peek(self, key: str) -> RateLimitDecision: ...

    def check(self, key: str) -> RateLimitDecision: ...


class InMemoryRateLimiter:
    """Per-process limiter; keeps one deque of hit timestamps per key.

    Keys whose newest hit has left the window are swept at most once per
    window, so one-off keys do not accumulate.
    """

    def __init__(self, max_requests: int, window_seconds: int) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._hits: dict[str, Deque[float]] = {}
        self._lock = Lock()
        self._last_sweep = time.monotonic()

    def __len__(self) -> int:
        return len(self._hits)

    def peek(self, key: str) -> RateLimitDecision:
        """Decide without recording a hit."""
        now = time.monotonic()
        with self._lock:
            return self._decide(self._prune(key, now), now)

    def check(self, key: str) -> RateLimitDecision:
        now = time.monotonic()
        with self._lock:
            self._sweep(now)
            hits = self._prune(key, now)
            decision = self._decide(hits, now)
            if decision.allowed:
                self._hits.setdefault(key, deque()).append(now)
            return decision

    def _prune(self, key: str, now: float) -> Deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        while hits and now - hits[0] >= self._window:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _decide(self, hits: Deque[float], now: float) -> RateLimitDecision:
        if len(hits) >= self._max_requests:
            wait = self._window - (now - hits[0])
            return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(wait)))
        return RateLimitDecision(allowed=True)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        expired = [key for key, hits in self._hits.items() if now - hits[-1] >= self._window]
        for key in expired:
            del self._hits[key]
        if expired:
            logger.debug("rate limiter dropped %d idle keys", len(expired))


def build_rate_limiter(settings: Settings) -> RateLimiter:
    """Instantiate the configured backend, falling back to memory when Redis is unreachable."""
    if settings.rate_limit_backend == "redis" and settings.redis_url:
        import redis

        from .redis_rate_limiter import RedisRateLimiter

        try:
            client = redis.from_url(settings.redis_url)
            client.ping()
        except redis.RedisError as exc:
            logger.warning("redis rate limiter unavailable, using in-memory backend: %s", exc)
        else:
            logger.info("rate limiter configured for redis backend")
            return RedisRateLimiter(
                client,
                max_requests=settings.rate_limit_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )

    logger.info("rate limiter using in-memory backend")
    return InMemoryRateLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
