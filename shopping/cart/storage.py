"""
Cart Store - durable customer_id -> cart mapping with versioned writes.

Every write is conditional on the version read before the mutation, so two
concurrent read-modify-write cycles on the same customer cannot overwrite
each other: the loser gets VersionConflictError and re-reads.
"""
import asyncio
import json
from typing import Dict, Tuple

from upstash_redis.asyncio import Redis as AsyncRedis

from shopping.db import RedisKeys, TTL
from shopping.errors import ShoppingError, StorageError, VersionConflictError
from shopping.logging import get_logger, sanitize_id_for_logging
from .models import Cart

logger = get_logger(__name__)


# KEYS[1] cart payload, KEYS[2] version counter
# ARGV[1] expected version, ARGV[2] payload, ARGV[3] ttl seconds (0 = none)
# Returns the new version, or -1 when the expected version is stale.
COMPARE_AND_SET_SCRIPT = """
local current = tonumber(redis.call('GET', KEYS[2]) or '0')
if current ~= tonumber(ARGV[1]) then
  return -1
end
local ttl = tonumber(ARGV[3])
local nextv = current + 1
if ttl > 0 then
  redis.call('SET', KEYS[1], ARGV[2], 'EX', ttl)
  redis.call('SET', KEYS[2], nextv, 'EX', ttl)
else
  redis.call('SET', KEYS[1], ARGV[2])
  redis.call('SET', KEYS[2], nextv)
end
return nextv
"""


class CartStore:
    """Cart store interface."""

    async def load(self, customer_id: str) -> Cart:
        """Return the customer's cart; an absent cart loads as empty."""
        raise NotImplementedError

    async def save(self, cart: Cart, expected_version: int) -> int:
        """
        Write the cart if the stored version still equals expected_version.

        Returns the new version and updates cart.version.
        Raises VersionConflictError otherwise.
        """
        raise NotImplementedError


class RedisCartStore(CartStore):
    """Cart store backed by Upstash Redis."""

    def __init__(self, redis: AsyncRedis, ttl: int = TTL.CART):
        self.redis = redis
        self.ttl = ttl

    async def load(self, customer_id: str) -> Cart:
        try:
            data, version = await self.redis.mget(
                RedisKeys.cart_key(customer_id),
                RedisKeys.cart_version_key(customer_id),
            )
        except Exception as e:
            logger.error(f"Failed to read cart from Redis: {e}")
            raise StorageError(f"Cart service unavailable: {e}") from e

        version = int(version or 0)
        if not data:
            return Cart(customer_id=customer_id, version=version)

        try:
            return Cart.from_dict(json.loads(data), version=version)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, ShoppingError) as e:
            # Never overwrite a payload that could not be read
            logger.error(
                f"Corrupted cart data for customer {sanitize_id_for_logging(customer_id)}: {e}"
            )
            raise StorageError("Cart data could not be read") from e

    async def save(self, cart: Cart, expected_version: int) -> int:
        try:
            result = await self.redis.eval(
                COMPARE_AND_SET_SCRIPT,
                keys=[
                    RedisKeys.cart_key(cart.customer_id),
                    RedisKeys.cart_version_key(cart.customer_id),
                ],
                args=[expected_version, json.dumps(cart.to_dict()), self.ttl],
            )
        except Exception as e:
            logger.error(f"Failed to save cart to Redis: {e}")
            raise StorageError(f"Cart service unavailable: {e}") from e

        new_version = int(result)
        if new_version < 0:
            raise VersionConflictError(cart.customer_id, expected_version)
        cart.version = new_version
        return new_version


class MemoryCartStore(CartStore):
    """
    In-process cart store for local development and tests.

    Payloads are kept serialized so loaded carts never alias stored state.
    """

    def __init__(self):
        self._carts: Dict[str, Tuple[str, int]] = {}

    async def load(self, customer_id: str) -> Cart:
        # Yield like a network read would, so concurrent callers interleave
        await asyncio.sleep(0)
        entry = self._carts.get(customer_id)
        if entry is None:
            return Cart(customer_id=customer_id)
        payload, version = entry
        return Cart.from_dict(json.loads(payload), version=version)

    async def save(self, cart: Cart, expected_version: int) -> int:
        await asyncio.sleep(0)
        _, current = self._carts.get(cart.customer_id, (None, 0))
        if current != expected_version:
            raise VersionConflictError(cart.customer_id, expected_version)
        new_version = current + 1
        self._carts[cart.customer_id] = (json.dumps(cart.to_dict()), new_version)
        cart.version = new_version
        return new_version
