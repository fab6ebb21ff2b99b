from app.cache import cache_keys


def test_user_keys():
    assert cache_keys.user(123) == "user:123"
    assert cache_keys.user_profile(456) == "user:profile:456"


def test_session_key():
    assert cache_keys.session("session-123") == "session:session-123"


def test_rbac_keys():
    assert cache_keys.permissions(789) == "rbac:permissions:789"
    assert cache_keys.roles(101) == "rbac:roles:101"


def test_api_response_key():
    assert cache_keys.api_response("/users", "page=1&limit=10") == "api:/users:page=1&limit=10"


def test_rate_limit_key():
    assert cache_keys.rate_limit("192.168.1.1", "/api/users") == "ratelimit:192.168.1.1:/api/users"


def test_customer_key_matches_invalidation_pattern():
    import fnmatch

    pattern = cache_keys.customer_pattern()
    assert fnmatch.fnmatchcase(cache_keys.customer("abc"), pattern)
