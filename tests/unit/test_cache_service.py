"""Tests for the fail-soft cache facade."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.cache import service as cache_service_module
from app.cache.schemas import LookupStatus
from app.cache.service import CacheService, _extract_memory_usage


@pytest.fixture
def mock_client(monkeypatch) -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock()
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    client.keys = AsyncMock()
    client.info = AsyncMock()
    client.dbsize = AsyncMock()
    monkeypatch.setattr(cache_service_module, "is_redis_ready", lambda: True)
    monkeypatch.setattr(cache_service_module, "get_redis", lambda: client)
    return client


class TestGet:
    async def test_returns_none_when_store_unavailable(self, cache, redis_down) -> None:
        assert await cache.get("test-key") is None

    async def test_returns_decoded_value_on_hit(self, cache, mock_client) -> None:
        mock_client.get.return_value = json.dumps({"id": 1, "name": "Test"})

        assert await cache.get("test-key") == {"id": 1, "name": "Test"}
        mock_client.get.assert_awaited_once_with("test-key")

    async def test_returns_none_on_miss(self, cache, mock_client) -> None:
        mock_client.get.return_value = None

        assert await cache.get("test-key") is None

    async def test_swallows_backend_errors(self, cache, mock_client) -> None:
        mock_client.get.side_effect = RedisConnectionError("Redis connection failed")

        assert await cache.get("test-key") is None

    async def test_swallows_decode_errors(self, cache, mock_client) -> None:
        mock_client.get.return_value = "{not json"

        assert await cache.get("test-key") is None


class TestLookup:
    async def test_distinguishes_miss_from_unavailable(self, cache, mock_client, monkeypatch):
        mock_client.get.return_value = None
        assert (await cache.lookup("k")).status is LookupStatus.miss

        monkeypatch.setattr(cache_service_module, "is_redis_ready", lambda: False)
        assert (await cache.lookup("k")).status is LookupStatus.unavailable

    async def test_error_carries_reason(self, cache, mock_client) -> None:
        mock_client.get.side_effect = RedisConnectionError("boom")

        result = await cache.lookup("k")

        assert result.status is LookupStatus.error
        assert result.reason == "boom"
        assert result.found is False

    async def test_hit_may_hold_falsy_value(self, cache, mock_client) -> None:
        mock_client.get.return_value = "0"

        result = await cache.lookup("counter")

        assert result.found is True
        assert result.value == 0

    async def test_empty_key_is_rejected(self, cache, mock_client) -> None:
        result = await cache.lookup("")

        assert result.status is LookupStatus.error
        mock_client.get.assert_not_awaited()


class TestSet:
    async def test_returns_false_when_store_unavailable(self, cache, redis_down) -> None:
        assert await cache.set("test-key", "test-value") is False

    async def test_uses_default_ttl(self, cache, mock_client) -> None:
        assert await cache.set("test-key", {"data": "test"}) is True
        mock_client.setex.assert_awaited_once_with(
            "test-key", 300, json.dumps({"data": "test"})
        )

    async def test_uses_custom_ttl(self, cache, mock_client) -> None:
        assert await cache.set("test-key", "test-value", 600) is True
        mock_client.setex.assert_awaited_once_with("test-key", 600, json.dumps("test-value"))

    @pytest.mark.parametrize("ttl", [0, -5, 1.5, True])
    async def test_rejects_invalid_ttl(self, cache, mock_client, ttl) -> None:
        assert await cache.set("test-key", "v", ttl) is False
        mock_client.setex.assert_not_awaited()

    async def test_swallows_backend_errors(self, cache, mock_client) -> None:
        mock_client.setex.side_effect = RedisConnectionError("Redis connection failed")

        assert await cache.set("test-key", "test-value") is False

    async def test_unserializable_value_returns_false(self, cache, mock_client) -> None:
        assert await cache.set("test-key", {1, 2, 3}) is False
        mock_client.setex.assert_not_awaited()


class TestDelete:
    async def test_returns_false_when_store_unavailable(self, cache, redis_down) -> None:
        assert await cache.delete("test-key") is False

    async def test_deletes_key(self, cache, mock_client) -> None:
        mock_client.delete.return_value = 1

        assert await cache.delete("test-key") is True
        mock_client.delete.assert_awaited_once_with("test-key")

    async def test_swallows_backend_errors(self, cache, mock_client) -> None:
        mock_client.delete.side_effect = RedisConnectionError("Redis connection failed")

        assert await cache.delete("test-key") is False


class TestDeletePattern:
    async def test_returns_zero_when_store_unavailable(self, cache, redis_down) -> None:
        assert await cache.delete_pattern("test:*") == 0

    async def test_deletes_all_matching_keys_in_one_call(self, cache, mock_client) -> None:
        mock_client.keys.return_value = ["test:1", "test:2", "test:3"]
        mock_client.delete.return_value = 3

        assert await cache.delete_pattern("test:*") == 3
        mock_client.keys.assert_awaited_once_with("test:*")
        mock_client.delete.assert_awaited_once_with("test:1", "test:2", "test:3")

    async def test_no_matches_skips_delete(self, cache, mock_client) -> None:
        mock_client.keys.return_value = []

        assert await cache.delete_pattern("nonexistent:*") == 0
        mock_client.delete.assert_not_awaited()

    async def test_swallows_backend_errors(self, cache, mock_client) -> None:
        mock_client.keys.side_effect = RedisConnectionError("Redis connection failed")

        assert await cache.delete_pattern("test:*") == 0


class TestAvailabilityAndStats:
    def test_is_available_follows_connection(self, cache, monkeypatch) -> None:
        monkeypatch.setattr(cache_service_module, "is_redis_ready", lambda: True)
        assert cache.is_available() is True

        monkeypatch.setattr(cache_service_module, "is_redis_ready", lambda: False)
        assert cache.is_available() is False

    async def test_stats_when_disconnected(self, cache, redis_down) -> None:
        stats = await cache.get_stats()

        assert stats.model_dump(exclude_none=True) == {"connected": False}

    async def test_stats_from_raw_info_string(self, cache, mock_client) -> None:
        mock_client.dbsize.return_value = 42
        mock_client.info.return_value = "used_memory_human:5.2M\nother_info:123"

        stats = await cache.get_stats()

        assert stats.connected is True
        assert stats.key_count == 42
        assert stats.memory_usage == "5.2M"
        mock_client.info.assert_awaited_once_with("memory")

    async def test_stats_from_parsed_info(self, cache, mock_client) -> None:
        mock_client.dbsize.return_value = 7
        mock_client.info.return_value = {"used_memory_human": "1.05M"}

        stats = await cache.get_stats()

        assert stats.memory_usage == "1.05M"

    async def test_stats_failure_is_optimistic(self, cache, mock_client) -> None:
        mock_client.info.return_value = "used_memory_human:5.2M"
        mock_client.dbsize.side_effect = RedisConnectionError("Redis error")

        stats = await cache.get_stats()

        assert stats.model_dump(exclude_none=True) == {"connected": True}


class TestDegradation:
    @pytest.mark.parametrize("key", ["a", "user:1", "x" * 300])
    @pytest.mark.parametrize("value", [None, 0, "s", [1, 2], {"nested": {"k": True}}])
    async def test_disconnected_store_never_raises(self, cache, redis_down, key, value):
        assert await cache.get(key) is None
        assert await cache.set(key, value) is False
        assert await cache.delete(key) is False
        assert await cache.delete_pattern(key + "*") == 0


class TestRoundTrip:
    @pytest.mark.parametrize(
        "value",
        [
            {"id": 1, "tags": ["a", "b"], "profile": {"vip": True, "score": 4.5}},
            [1, "two", None, {"three": 3}],
            "plain string",
            12345,
            False,
        ],
    )
    async def test_set_then_get_returns_equal_value(self, cache, fake_redis, value) -> None:
        assert await cache.set("roundtrip", value) is True
        assert await cache.get("roundtrip") == value
        assert fake_redis.ttls["roundtrip"] == 300


def test_extract_memory_usage_handles_missing_field() -> None:
    assert _extract_memory_usage("nothing here") is None
    assert _extract_memory_usage({}) is None
    assert _extract_memory_usage(b"used_memory_human:2K\r\n") == "2K"
