from __future__ import annotations

import redis

from gameshelf.config import ShelfSettings


def create_redis(settings: ShelfSettings) -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)
