"""
Shared JSON cache on top of Redis, used for discount rules and coupons.
Every failure is logged and reported as a miss so pricing never depends on Redis.
"""

import json
import logging
from typing import Optional, Any
import redis.asyncio as redis

from app.core.config import settings
from app.core.redis import get_redis_client

logger = logging.getLogger(__name__)


class SimpleCache:
    """Simple key/value cache with a key prefix"""

    def __init__(self, redis_client: Optional[redis.Redis] = None, key_prefix: str = ""):
        self.redis_client = redis_client
        self.key_prefix = key_prefix

    @property
    def client(self) -> Optional[redis.Redis]:
        """Explicit client, else the shared pool once it is initialised"""
        if not settings.cache_enabled:
            return None
        return self.redis_client or get_redis_client()

    def _get_key(self, key: str) -> str:
        """Full cache key"""
        return f"{self.key_prefix}{key}" if self.key_prefix else key

    async def get(self, key: str) -> Optional[Any]:
        """Cached value or None"""
        client = self.client
        if client is None:
            return None
        try:
            data = await client.get(self._get_key(key))
            if data:
                return json.loads(data)
            return None

        except Exception as e:
            logger.error(f"Cache get failed {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Store a JSON-serialisable value"""
        client = self.client
        if client is None:
            return False
        try:
            data = json.dumps(value, default=str, ensure_ascii=False)
            await client.setex(self._get_key(key), ttl, data)
            return True

        except Exception as e:
            logger.error(f"Cache set failed {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Drop one key"""
        client = self.client
        if client is None:
            return False
        try:
            result = await client.delete(self._get_key(key))
            return result > 0

        except Exception as e:
            logger.error(f"Cache delete failed {key}: {e}")
            return False


# Cache instances per area
discount_rule_cache = SimpleCache(key_prefix="discount_rule:")
coupon_cache = SimpleCache(key_prefix="coupon:")
