from enum import StrEnum

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.config import settings

logger = structlog.get_logger()


class ConnectionStatus(StrEnum):
    connected = "connected"
    disconnected = "disconnected"


_client: Redis | None = None
_status: ConnectionStatus = ConnectionStatus.disconnected


async def connect_redis() -> ConnectionStatus:
    """Open the shared Redis client. Failure leaves the cache disconnected."""
    global _client, _status

    if not settings.redis_enabled:
        logger.info("redis_disabled")
        return _status

    client = Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=settings.redis_connect_timeout,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis_connect_failed", url=settings.redis_url, error=str(exc))
        await client.aclose()
        _client = None
        _status = ConnectionStatus.disconnected
        return _status

    _client = client
    _status = ConnectionStatus.connected
    logger.info("redis_connected", url=settings.redis_url)
    return _status


async def close_redis() -> None:
    global _client, _status
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("redis_closed")
    _status = ConnectionStatus.disconnected


async def refresh_status() -> ConnectionStatus:
    """Ping the store and update the connection status accordingly."""
    global _status
    if _client is None:
        _status = ConnectionStatus.disconnected
        return _status

    try:
        await _client.ping()
    except (RedisError, OSError) as exc:
        if _status is ConnectionStatus.connected:
            logger.warning("redis_connection_lost", error=str(exc))
        _status = ConnectionStatus.disconnected
    else:
        _status = ConnectionStatus.connected
    return _status


def get_redis() -> Redis | None:
    return _client


def get_status() -> ConnectionStatus:
    return _status


def is_redis_ready() -> bool:
    return _client is not None and _status is ConnectionStatus.connected
