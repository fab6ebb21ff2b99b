from app.cache import keys as cache_keys
from app.cache.schemas import CacheLookup, CacheStats, LookupStatus
from app.cache.service import DEFAULT_TTL, CacheService, cache_service

__all__ = [
    "DEFAULT_TTL",
    "CacheLookup",
    "CacheService",
    "CacheStats",
    "LookupStatus",
    "cache_keys",
    "cache_service",
]
