"""
Rate limiter - one admitted request per window per client identity.

Two backends:
  memory: process-local table with least-recently-used eviction.
  redis:  SET NX PX per identity, so the window is shared across processes.
"""
from collections import OrderedDict
from typing import Iterable, Mapping, Optional, Protocol
import logging
import threading

import redis

from chatroom.core.config import Settings
from chatroom.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

UNKNOWN_IDENTITY = "unknown"


class RateLimiter(Protocol):
    def admit(self, identity: str) -> bool:
        ...


class MemoryRateLimiter:
    """In-process throttle table bounded by max_identities."""

    def __init__(self, window_ms: int, max_identities: int = 10_000, clock: Clock = now_ms) -> None:
        self.window_ms = window_ms
        self.max_identities = max_identities
        self.clock = clock
        self._last_admitted: "OrderedDict[str, int]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._last_admitted)

    def admit(self, identity: str) -> bool:
        now = self.clock()
        with self._lock:
            last = self._last_admitted.get(identity)
            if last is not None and now - last < self.window_ms:
                self._last_admitted.move_to_end(identity)
                return False
            self._last_admitted[identity] = now
            self._last_admitted.move_to_end(identity)
            while len(self._last_admitted) > self.max_identities:
                self._last_admitted.popitem(last=False)
        return True


class RedisRateLimiter:
    """Throttle stored in Redis with a TTL of one window. Fails open if Redis is down."""

    def __init__(self, client: redis.Redis, window_ms: int, key_prefix: str = "ratelimit:") -> None:
        self.client = client
        self.window_ms = window_ms
        self.key_prefix = key_prefix

    def admit(self, identity: str) -> bool:
        if self.window_ms <= 0:
            return True
        try:
            return bool(self.client.set(f"{self.key_prefix}{identity}", 1, px=self.window_ms, nx=True))
        except redis.RedisError as e:
            logger.warning(f"Rate limiter unavailable, admitting request: {e}")
            return True


def init_redis(url: str, timeout_seconds: float = 1.0) -> redis.Redis:
    """Create a Redis client backed by a small connection pool."""
    pool = redis.ConnectionPool.from_url(
        url,
        decode_responses=True,
        max_connections=10,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )
    logger.info("Redis rate limiter initialized")
    return redis.Redis(connection_pool=pool)


def build_rate_limiter(config: Settings) -> RateLimiter:
    if config.RATE_LIMIT_BACKEND == "redis":
        if not config.REDIS_URL:
            raise ValueError("RATE_LIMIT_BACKEND=redis requires REDIS_URL")
        return RedisRateLimiter(init_redis(config.REDIS_URL), window_ms=config.RATE_LIMIT_WINDOW_MS)
    return MemoryRateLimiter(
        window_ms=config.RATE_LIMIT_WINDOW_MS,
        max_identities=config.RATE_LIMIT_MAX_IDENTITIES,
    )


def identity_from_headers(headers: Mapping[str, str], header_names: Iterable[str]) -> str:
    """Best-effort client identity from proxy headers; all unidentified clients share one bucket."""
    for name in header_names:
        value: Optional[str] = headers.get(name)
        if not value:
            continue
        # X-Forwarded-For: client, proxy1, proxy2
        value = value.split(",")[0].strip()
        if value:
            return value
    return UNKNOWN_IDENTITY
