"""Redis cache layer for short links."""

import logging
from typing import Optional

import redis.asyncio as redis

from ..errors import CacheError


class RedisCache:
    """Redis cache mapping short codes to target URLs.

    ``get`` returns None on a miss and raises ``CacheError`` when Redis
    cannot be reached, so callers can tell the two apart.
    """

    KEY_PREFIX = "shorturl"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        client: Optional[redis.Redis] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            client: Pre-built client (takes precedence over redis_url)
            logger: Optional logger instance
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.client: Optional[redis.Redis] = client

    async def connect(self) -> None:
        """Create the client and verify connectivity.

        A failed ping is logged; the client stays in place and individual
        calls raise CacheError until Redis comes back.
        """
        if self.client is None:
            if not self.redis_url:
                raise CacheError("No Redis URL configured")
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

        try:
            await self.client.ping()
            self.logger.info(f"Connected to Redis, cache TTL={self.ttl_seconds}s")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")

    def _require_client(self) -> redis.Redis:
        if self.client is None:
            raise CacheError("Redis cache is not connected")
        return self.client

    def cache_key(self, short_code: str) -> str:
        """Generate cache key for short code."""
        return f"{self.KEY_PREFIX}:{short_code}"

    async def get(self, key: str) -> Optional[str]:
        """Get value from cache.

        Returns:
            Cached value, or None on a miss
        """
        client = self._require_client()
        try:
            return await client.get(key)
        except Exception as e:
            raise CacheError(f"Cache get failed for {key}: {e}") from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        """Set value in cache with an explicit TTL (seconds)."""
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        client = self._require_client()
        try:
            await client.set(key, value, ex=ttl)
        except Exception as e:
            raise CacheError(f"Cache set failed for {key}: {e}") from e

    async def set_default(self, key: str, value: str) -> None:
        """Set value in cache with the default TTL."""
        await self.set(key, value, self.ttl_seconds)

    async def delete(self, key: str) -> bool:
        """Delete key from cache.

        Returns:
            True if a key was removed
        """
        client = self._require_client()
        try:
            return await client.delete(key) > 0
        except Exception as e:
            raise CacheError(f"Cache delete failed for {key}: {e}") from e

    async def exists(self, key: str) -> bool:
        client = self._require_client()
        try:
            return await client.exists(key) > 0
        except Exception as e:
            raise CacheError(f"Cache exists failed for {key}: {e}") from e

    async def health_check(self) -> bool:
        try:
            await self._require_client().ping()
            return True
        except Exception as e:
            self.logger.warning(f"Cache health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")
