"""
Login attempt limiter with a pluggable counter store.

InMemoryAttemptStore is process-local (single instance only). RedisAttemptStore
keeps the same sliding window in Redis so several API instances share it.
"""

import logging
import threading
import time
import uuid
from collections import deque
from typing import Protocol

import redis

from squadline.core.config import Settings

logger = logging.getLogger(__name__)

EMAIL_PREFIX_LEN = 3
REDIS_KEY_PREFIX = "login-attempts:"


class AttemptStore(Protocol):
    def hit(self, key: str, now: float, window_seconds: float) -> int:
        """Record one attempt at `now`; return attempts inside the window, this one included."""
        ...

    def reset(self, key: str) -> None:
        ...


class InMemoryAttemptStore:
    """
    Per-key timestamp deques; safe under the threadpool that runs sync endpoints.

    Keys whose newest attempt has left the window are swept at most once per
    window, so keys that are never hit again do not accumulate.
    """

    def __init__(self) -> None:
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep: float | None = None

    def _sweep(self, cutoff: float) -> None:
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for k in stale:
            del self._hits[k]
        if stale:
            logger.debug("Swept %s expired login attempt keys", len(stale))

    def hit(self, key: str, now: float, window_seconds: float) -> int:
        cutoff = now - window_seconds
        with self._lock:
            if self._last_sweep is None:
                self._last_sweep = now
            elif now - self._last_sweep >= window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            hits.append(now)
            return len(hits)

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self, key: str) -> None:
        with self._lock:
            self._hits.pop(key, None)


class RedisAttemptStore:
    """Sliding window in a Redis sorted set scored by attempt time."""

    def __init__(self, client: "redis.Redis") -> None:
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisAttemptStore":
        return cls(redis.from_url(url, decode_responses=True))

    def hit(self, key: str, now: float, window_seconds: float) -> int:
        redis_key = REDIS_KEY_PREFIX + key
        pipe = self.client.pipeline()
        pipe.zremrangebyscore(redis_key, 0, now - window_seconds)
        pipe.zadd(redis_key, {f"{now}:{uuid.uuid4().hex}": now})
        pipe.zcard(redis_key)
        pipe.expire(redis_key, int(window_seconds) + 1)
        _, _, count, _ = pipe.execute()
        return int(count)

    def reset(self, key: str) -> None:
        self.client.delete(REDIS_KEY_PREFIX + key)


class LoginRateLimiter:
    def __init__(
        self,
        store: AttemptStore,
        max_attempts: int = 10,
        window_seconds: float = 15 * 60,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "LoginRateLimiter":
        if settings.RATE_LIMIT_REDIS_URL:
            store: AttemptStore = RedisAttemptStore.from_url(settings.RATE_LIMIT_REDIS_URL)
            logger.info("Login rate limiter using Redis")
        else:
            store = InMemoryAttemptStore()
            logger.info("Login rate limiter using in-memory store (single instance only)")
        return cls(
            store,
            max_attempts=settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
            window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES * 60,
        )

    def check_and_increment(self, key: str, now: float | None = None) -> bool:
        """Count this attempt; False once the key exceeds max_attempts in the window."""
        try:
            count = self.store.hit(key, time.time() if now is None else now, self.window_seconds)
        except redis.RedisError as e:
            # fail open while the store is unreachable
            logger.error("Login rate limiter unavailable, allowing attempt for %s: %s", key, e)
            return True
        if count > self.max_attempts:
            logger.warning("Login attempts blocked for %s (%s in window)", key, count)
            return False
        return True

    def reset(self, key: str) -> None:
        try:
            self.store.reset(key)
        except redis.RedisError as e:
            logger.error("Could not reset login attempts for %s: %s", key, e)


def login_key(client_ip: str | None, email: str | None) -> str:
    """Client IP plus a masked email prefix, e.g. '10.0.0.1:ali***'."""
    key = client_ip or "unknown"
    normalized = str(email or "").strip().lower()
    if normalized:
        return f"{key}:{normalized[:EMAIL_PREFIX_LEN]}***"
    return key
