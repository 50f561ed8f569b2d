# coursehub/core/cache.py
"""Redis caching implementation."""
import json
import logging
from typing import Any, Optional, Union
from datetime import timedelta
import redis.asyncio as redis
from ..core.config import settings

logger = logging.getLogger(__name__)

class CacheManager:
    """JSON value cache. Failures are logged and treated as misses."""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis: Optional[redis.Redis] = client

    async def connect(self):
        """Initialize Redis connection."""
        if not self.redis:
            self.redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True
            )

    async def disconnect(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.redis:
            await self.connect()

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Cache get failed for {key}: {e}")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set value in cache."""
        if not self.redis:
            await self.connect()

        try:
            serialized = json.dumps(value, default=str)
            if expire:
                if isinstance(expire, timedelta):
                    expire = int(expire.total_seconds())
                return bool(await self.redis.setex(key, expire, serialized))
            return bool(await self.redis.set(key, serialized))
        except redis.RedisError as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

# Global cache instance
cache = CacheManager()

async def get_cache():
    """Dependency to get cache instance."""
    return cache
