from fastapi import APIRouter, Query

from app.cache.schemas import CacheStats, KeyDeleteResponse, PatternDeleteResponse
from app.dependencies import APIKey, CacheServiceDep

router = APIRouter()


@router.get("/stats", response_model=CacheStats)
async def get_cache_stats(
    cache: CacheServiceDep,
    _api_key: APIKey,
) -> CacheStats:
    return await cache.get_stats()


@router.delete("/", response_model=PatternDeleteResponse)
async def invalidate_pattern(
    cache: CacheServiceDep,
    _api_key: APIKey,
    pattern: str = Query(min_length=1),
) -> PatternDeleteResponse:
    deleted = await cache.delete_pattern(pattern)
    return PatternDeleteResponse(pattern=pattern, deleted=deleted)


@router.delete("/{key:path}", response_model=KeyDeleteResponse)
async def invalidate_key(
    key: str,
    cache: CacheServiceDep,
    _api_key: APIKey,
) -> KeyDeleteResponse:
    deleted = await cache.delete(key)
    return KeyDeleteResponse(key=key, deleted=deleted)
