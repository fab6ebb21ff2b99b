"""Cache key builders.

Every component that reads or invalidates a logical entry must derive the key
through these functions so that writers and invalidators agree on the name.
"""


def user(user_id: int | str) -> str:
    return f"user:{user_id}"


def user_profile(user_id: int | str) -> str:
    return f"user:profile:{user_id}"


def session(session_id: str) -> str:
    return f"session:{session_id}"


def permissions(user_id: int | str) -> str:
    return f"rbac:permissions:{user_id}"


def roles(user_id: int | str) -> str:
    return f"rbac:roles:{user_id}"


def api_response(endpoint: str, params: str) -> str:
    return f"api:{endpoint}:{params}"


def rate_limit(ip: str, endpoint: str) -> str:
    return f"ratelimit:{ip}:{endpoint}"


def customer(customer_id: str) -> str:
    return f"customer:{customer_id}"


def customer_pattern() -> str:
    return "customer:*"
