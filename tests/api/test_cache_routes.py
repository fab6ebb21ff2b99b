import json


async def test_stats_when_disconnected(api_client) -> None:
    response = await api_client.get("/api/v1/cache/stats")

    assert response.status_code == 200
    assert response.json() == {"connected": False, "key_count": None, "memory_usage": None}


async def test_stats_when_connected(api_client, fake_redis) -> None:
    fake_redis.store["user:1"] = json.dumps({"id": 1})

    response = await api_client.get("/api/v1/cache/stats")

    assert response.json() == {"connected": True, "key_count": 1, "memory_usage": "1.05M"}


async def test_pattern_invalidation(api_client, fake_redis) -> None:
    fake_redis.store.update({"customer:1": "{}", "customer:2": "{}", "user:1": "{}"})

    response = await api_client.delete("/api/v1/cache/", params={"pattern": "customer:*"})

    assert response.status_code == 200
    assert response.json() == {"pattern": "customer:*", "deleted": 2}
    assert list(fake_redis.store) == ["user:1"]


async def test_pattern_is_required(api_client) -> None:
    response = await api_client.delete("/api/v1/cache/")

    assert response.status_code == 422


async def test_single_key_invalidation(api_client, fake_redis) -> None:
    fake_redis.store["rbac:permissions:7"] = "[]"

    response = await api_client.delete("/api/v1/cache/rbac:permissions:7")

    assert response.json() == {"key": "rbac:permissions:7", "deleted": True}
    assert fake_redis.store == {}


async def test_invalidation_is_noop_without_cache(api_client) -> None:
    response = await api_client.delete("/api/v1/cache/", params={"pattern": "*"})

    assert response.json() == {"pattern": "*", "deleted": 0}


async def test_health_reports_cache_status(api_client) -> None:
    response = await api_client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "cache": "disconnected"}
