import json
import logging

import redis.asyncio as redis

from app.config import settings

logger = logging.getLogger(__name__)

LIST_PREFIX = "games:list:"
DETAIL_PREFIX = "games:detail:"


class CacheManager:
    """
    Cache-aside manager backed by Redis.

    Every public method degrades to a no-op when Redis is unavailable:
    reads return None and writes are skipped.  A cache failure must
    never turn a list request into an error response.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, caching disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the cached value for *key*, or None on a miss or error."""
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(data)

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching *pattern* (SCAN, not KEYS) and return the count."""
        if not self._redis:
            return 0
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
            return len(keys)
        except Exception as exc:
            logger.debug("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)
            return 0

    # ------------------------------------------------------------------
    # Catalog keys
    # ------------------------------------------------------------------

    @staticmethod
    def list_key(spec_key: str) -> str:
        return f"{LIST_PREFIX}{spec_key}"

    @staticmethod
    def detail_key(game_id: int) -> str:
        return f"{DETAIL_PREFIX}{game_id}"

    async def invalidate_games(self) -> None:
        """
        Drop cached list pages after a catalog write.

        Any insert can shift every page and every total, so all list keys
        go regardless of which filters they encode.
        """
        await self.delete_pattern(f"{LIST_PREFIX}*")

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Module-level singleton shared across all request handlers.
cache = CacheManager()
