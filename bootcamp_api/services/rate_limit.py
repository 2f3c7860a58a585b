from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Protocol

import redis
from fastapi import HTTPException

from bootcamp_api.core.config import settings

_LOG = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int
    current_value: int


class RateLimiter(Protocol):
    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        ...


class InMemoryRateLimiter:
    """Fixed-window counter kept in process memory; used when Redis is unreachable."""

    def __init__(self):
        self._windows: dict[str, tuple[datetime, int]] = {}
        self._lock = Lock()

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        now = datetime.now(timezone.utc)
        window = timedelta(seconds=max(int(window_seconds), 1))
        with self._lock:
            started_at, count = self._windows.get(key, (now, 0))
            if now - started_at >= window:
                started_at, count = now, 0
            count += 1
            self._windows[key] = (started_at, count)
        retry_after = max(1, int((started_at + window - now).total_seconds()))
        return RateLimitResult(allowed=count <= limit, retry_after_seconds=retry_after, current_value=count)


class RedisRateLimiter:
    def __init__(self, client: redis.Redis):
        self.client = client

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        window = int(max(window_seconds, 1))
        pipe = self.client.pipeline()
        pipe.incr(key)
        pipe.expire(key, window, nx=True)
        pipe.ttl(key)
        count, _, ttl = pipe.execute()
        ttl = int(ttl) if int(ttl) >= 0 else window
        return RateLimitResult(allowed=int(count) <= limit, retry_after_seconds=ttl, current_value=int(count))


_cached_limiter: RateLimiter | None = None


def _build_limiter() -> RateLimiter:
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_timeout=0.4,
            socket_connect_timeout=0.4,
        )
        client.ping()
        return RedisRateLimiter(client)
    except redis.RedisError:
        _LOG.warning("Redis limiter unavailable; falling back to in-memory limiter")
        return InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    global _cached_limiter
    if _cached_limiter is None:
        _cached_limiter = _build_limiter()
    return _cached_limiter


def reset_rate_limiter_for_tests(limiter: RateLimiter | None = None) -> None:
    global _cached_limiter
    _cached_limiter = limiter


def login_rate_limit_key(email: str, client_ip: str | None) -> str:
    digest = hashlib.sha256(f"{email.strip().lower()}|{client_ip or '-'}".encode("utf-8")).hexdigest()
    return f"rl:login:{digest}"


def enforce_login_rate_limit(email: str, client_ip: str | None) -> None:
    result = get_rate_limiter().hit(
        login_rate_limit_key(email, client_ip),
        limit=int(settings.LOGIN_RATE_LIMIT),
        window_seconds=int(settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS),
    )
    if not result.allowed:
        _LOG.warning("login rate limit exceeded attempts=%s", result.current_value)
        raise HTTPException(
            status_code=429,
            detail="Too many login attempts, try again later",
            headers={"Retry-After": str(result.retry_after_seconds)},
        )
