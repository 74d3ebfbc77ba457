"""
Redis cache for the student take-view of a quiz
"""
import redis
import json
import logging
from typing import Optional, Any
from quizhub.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based cache; every operation degrades to a miss without Redis"""

    def __init__(self, client=None):
        self.redis_client = client
        if client is not None or not settings.CACHE_ENABLED:
            return

        try:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    @staticmethod
    def take_view_key(quiz_id) -> str:
        return f"quiz:take:{quiz_id}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except redis.RedisError as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Time to live in seconds (default from settings)
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.DEFAULT_QUIZ_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def invalidate_quiz(self, quiz_id) -> bool:
        """Drop cached views of a quiz after it or its questions change"""
        if not self.redis_client:
            return False

        key = self.take_view_key(quiz_id)
        try:
            self.redis_client.delete(key)
            logger.info(f"Cache invalidated: {key}")
            return True
        except redis.RedisError as e:
            logger.error(f"Cache delete error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
