import json
import re
from typing import Any

import structlog

from app.cache.client import get_redis, is_redis_ready
from app.cache.schemas import CacheLookup, CacheStats, LookupStatus
from app.config import settings

logger = structlog.get_logger()

DEFAULT_TTL = 300

_MEMORY_PATTERN = re.compile(r"used_memory_human:(.+)")


def _extract_memory_usage(info: Any) -> str | None:
    """Pull the human readable memory figure out of an INFO reply."""
    if isinstance(info, dict):
        value = info.get("used_memory_human")
        return str(value).strip() if value is not None else None
    if isinstance(info, bytes):
        info = info.decode("utf-8", errors="replace")
    match = _MEMORY_PATTERN.search(str(info))
    return match.group(1).strip() if match else None


class CacheService:
    """Fail-soft facade over the shared Redis store.

    Every operation degrades to a "no cache" sentinel when the store is
    unreachable or a call fails; nothing here raises for operational errors.
    """

    def __init__(self, default_ttl: int = DEFAULT_TTL) -> None:
        self._default_ttl = default_ttl

    async def lookup(self, key: str) -> CacheLookup:
        if not key:
            return CacheLookup(LookupStatus.error, reason="empty key")
        if not is_redis_ready():
            return CacheLookup(LookupStatus.unavailable)

        try:
            cached = await get_redis().get(key)
            if cached is None:
                return CacheLookup(LookupStatus.miss)
            return CacheLookup(LookupStatus.hit, value=json.loads(cached))
        except Exception as exc:
            logger.warning("cache_get_failed", key=key, error=str(exc))
            return CacheLookup(LookupStatus.error, reason=str(exc))

    async def get(self, key: str) -> Any | None:
        result = await self.lookup(key)
        return result.value if result.found else None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        if not key or isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            logger.warning("cache_set_rejected", key=key, ttl=ttl)
            return False
        if not is_redis_ready():
            return False

        try:
            await get_redis().setex(key, ttl, json.dumps(value))
            return True
        except Exception as exc:
            logger.warning("cache_set_failed", key=key, error=str(exc))
            return False

    async def delete(self, key: str) -> bool:
        if not key or not is_redis_ready():
            return False

        try:
            await get_redis().delete(key)
            return True
        except Exception as exc:
            logger.warning("cache_delete_failed", key=key, error=str(exc))
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a Redis glob pattern; returns how many matched."""
        if not pattern or not is_redis_ready():
            return 0

        client = get_redis()
        try:
            keys = await client.keys(pattern)
            if keys:
                await client.delete(*keys)
            return len(keys)
        except Exception as exc:
            logger.warning("cache_pattern_delete_failed", pattern=pattern, error=str(exc))
            return 0

    def is_available(self) -> bool:
        return is_redis_ready()

    async def get_stats(self) -> CacheStats:
        if not is_redis_ready():
            return CacheStats(connected=False)

        client = get_redis()
        try:
            info = await client.info("memory")
            key_count = await client.dbsize()
        except Exception as exc:
            logger.warning("cache_stats_failed", error=str(exc))
            return CacheStats(connected=True)

        return CacheStats(
            connected=True,
            key_count=key_count,
            memory_usage=_extract_memory_usage(info),
        )


cache_service = CacheService(default_ttl=settings.cache_default_ttl)
