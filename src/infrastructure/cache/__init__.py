# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cache infrastructure using Redis.

Example:
    from src.infrastructure.cache import init_redis, get_redis

    await init_redis(settings)
    redis = get_redis()
    await redis.set("onboarding:u-1", state, expire_seconds=3600)
    await close_redis()
"""

from src.infrastructure.cache.redis_client import (
    RedisClient,
    RedisError,
    close_redis,
    get_redis,
    init_redis,
)

__all__ = [
    "RedisClient",
    "RedisError",
    "close_redis",
    "get_redis",
    "init_redis",
]
