from .limiter import (
    UNKNOWN_IDENTITY,
    MemoryRateLimiter,
    RateLimiter,
    RedisRateLimiter,
    build_rate_limiter,
    identity_from_headers,
    init_redis,
)

__all__ = [
    "UNKNOWN_IDENTITY",
    "MemoryRateLimiter",
    "RateLimiter",
    "RedisRateLimiter",
    "build_rate_limiter",
    "identity_from_headers",
    "init_redis",
]
