from typing import Any
from cachetools import TTLCache
import redis
from .config import settings

# In-process cache for local dev and single-instance deployments.
_local_cache = TTLCache(maxsize=4096, ttl=settings.CACHE_TTL_SECONDS)

class Cache:
    """
    Thin abstraction over Redis/in-memory so swapping is one flag away.
    Holds rate-limit counters and the macro-market context text.
    """
    def __init__(self, use_redis: bool = settings.USE_REDIS):
        self.backend = None
        if use_redis:
            self.backend = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

    def get(self, key: str) -> Any | None:
        if self.backend:
            return self.backend.get(key)
        return _local_cache.get(key)

    def set(self, key: str, value: str, ttl: int | None = None) -> None:
        if self.backend:
            self.backend.setex(key, ttl or settings.CACHE_TTL_SECONDS, value)
        else:
            _local_cache[key] = value

    def incr(self, key: str, ttl: int) -> int:
        """Increment a counter, starting it at 1 with `ttl` seconds to live."""
        if self.backend:
            pipe = self.backend.pipeline()
            pipe.incr(key)
            pipe.expire(key, ttl)
            count, _ = pipe.execute()
            return int(count)
        try:
            count = int(_local_cache.get(key, 0)) + 1
        except ValueError:
            count = 1
        _local_cache[key] = str(count)
        return count

    def clear(self) -> None:
        # Only the in-process store; Redis keys expire on their own.
        _local_cache.clear()

cache = Cache()
