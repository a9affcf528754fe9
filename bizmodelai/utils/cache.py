"""
Redis cache utility for generated report content
"""
import redis
import json
import logging
import hashlib
from typing import Optional, Any

logger = logging.getLogger(__name__)


class CacheService:
    """
    Redis-based advisory cache

    Entries are safe to lose: every miss or redis error simply falls back to
    regenerating the value. An empty URL disables caching.
    """

    def __init__(self, redis_url: str, default_ttl: int = 3600):
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self.redis_client: Optional[redis.Redis] = None

    def open(self) -> "CacheService":
        if not self.redis_url:
            logger.info("Redis URL not configured. Caching disabled.")
            return self

        try:
            self.redis_client = redis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None
        return self

    def close(self) -> None:
        if self.redis_client is not None:
            try:
                self.redis_client.close()
            except Exception as e:
                logger.warning(f"Redis close error: {str(e)}")
        self.redis_client = None

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def generate_insight_key(self, quiz_response: dict, business_model_id: str) -> str:
        """
        Deterministic key for AI insight content

        Same answers + same model -> same key
        """
        canonical = json.dumps(quiz_response, sort_keys=True, separators=(",", ":"), default=str)
        digest = hashlib.sha256(canonical.encode()).hexdigest()
        return f"insights:{business_model_id}:{digest}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.info(f"Cache hit: {key}")
                return json.loads(value)
            logger.info(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: int = None
    ) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or self.default_ttl
            serialized = json.dumps(value)
            self.redis_client.setex(key, ttl, serialized)
            logger.info(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def clear_model_insights(self, business_model_id: str) -> int:
        """Clear all cached insights for a business model"""
        if not self.redis_client:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=f"insights:{business_model_id}:*"))
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} cache entries for {business_model_id}")
            return len(keys)
        except Exception as e:
            logger.error(f"Cache clear error: {str(e)}")
            return 0
