"""
Database Module - Upstash Redis and Supabase clients

Provides client factories for:
- Async Upstash Redis client (cart store)
- Async Supabase client (order store)

Clients are created once by the application lifespan and passed to the
stores that use them.
"""

import os

from supabase._async.client import AsyncClient, create_client as acreate_client
from upstash_redis.asyncio import Redis as AsyncRedis


SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")


def create_redis() -> AsyncRedis:
    """
    Create async Upstash Redis client.

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
        raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
    return AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)


async def create_supabase() -> AsyncClient:
    """Create async Supabase client."""
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return await acreate_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)


class RedisKeys:
    """Redis key prefixes for cart data."""

    CART = "cart:"  # cart:{customer_id}
    CART_VERSION_SUFFIX = ":version"  # cart:{customer_id}:version

    @staticmethod
    def cart_key(customer_id: str) -> str:
        return f"{RedisKeys.CART}{customer_id}"

    @staticmethod
    def cart_version_key(customer_id: str) -> str:
        return f"{RedisKeys.CART}{customer_id}{RedisKeys.CART_VERSION_SUFFIX}"


class TTL:
    """Time-to-live constants for Redis keys (seconds, 0 = no expiry)."""

    CART = int(os.environ.get("CART_TTL_SECONDS", "0") or 0)


class Tables:
    """Supabase table names."""

    ORDERS = "orders"
