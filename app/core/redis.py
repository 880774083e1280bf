import redis.asyncio as aioredis
from typing import Optional
from app.core.config import settings
import structlog

"Redis connection manager shared by the caches and the health check"

logger = structlog.get_logger()


class RedisManager:
    """Redis connection manager"""

    def __init__(self):
        self.redis_pool: Optional[aioredis.Redis] = None

    async def init_redis(self) -> None:
        """Open the connection pool and ping it"""
        try:
            self.redis_pool = aioredis.from_url(
                settings.redis_url_computed,
                encoding="utf-8",
                decode_responses=True,
                max_connections=20,
                retry_on_timeout=True
            )
            await self.redis_pool.ping()
            logger.info("redis_connected", url=settings.redis_url_computed)
        except Exception as e:
            logger.error("redis_connect_failed", error=str(e))
            raise

    async def close_redis(self) -> None:
        """Close the connection pool"""
        if self.redis_pool:
            await self.redis_pool.close()
            self.redis_pool = None
            logger.info("redis_closed")

    async def ping(self) -> bool:
        """True when Redis answers"""
        if not self.redis_pool:
            return False
        try:
            return bool(await self.redis_pool.ping())
        except Exception as e:
            logger.error("redis_ping_failed", error=str(e))
            return False


# Global Redis manager
redis_manager = RedisManager()


def get_redis_client() -> Optional[aioredis.Redis]:
    """The shared Redis client, None until init_redis() ran"""
    return redis_manager.redis_pool
