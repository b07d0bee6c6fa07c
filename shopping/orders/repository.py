"""Order Store - order persistence (Supabase and in-memory)."""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from supabase._async.client import AsyncClient

from shopping.db import Tables
from shopping.errors import StorageError
from shopping.logging import get_logger, sanitize_id_for_logging
from .models import Order

logger = get_logger(__name__)


class OrderStore:
    """Order store interface. Orders are written once; only markers change."""

    async def create(self, order: Order) -> Order:
        raise NotImplementedError

    async def get(self, order_id: str) -> Optional[Order]:
        raise NotImplementedError

    async def list_by_customer(self, customer_id: str) -> List[Order]:
        """All of a customer's orders, newest first."""
        raise NotImplementedError

    async def mark_cart_cleared(self, order_id: str) -> None:
        raise NotImplementedError

    async def list_unsettled(self, created_before: datetime, limit: int = 100) -> List[Order]:
        """Orders whose cart settlement is not yet confirmed, oldest first."""
        raise NotImplementedError


class SupabaseOrderStore(OrderStore):
    """Order database operations on the Supabase `orders` table."""

    def __init__(self, client: AsyncClient) -> None:
        self.client = client

    async def create(self, order: Order) -> Order:
        try:
            result = await self.client.table(Tables.ORDERS).insert(order.to_row()).execute()
        except Exception as e:
            logger.error(
                f"Failed to insert order {sanitize_id_for_logging(order.order_id)}: {e}",
                exc_info=True,
            )
            raise StorageError(f"Order could not be saved: {e}") from e
        return Order(**result.data[0]) if result.data else order

    async def get(self, order_id: str) -> Optional[Order]:
        try:
            result = await self.client.table(Tables.ORDERS).select("*").eq(
                "order_id", order_id
            ).limit(1).execute()
        except Exception as e:
            raise StorageError(f"Order lookup failed: {e}") from e
        return Order(**result.data[0]) if result.data else None

    async def list_by_customer(self, customer_id: str) -> List[Order]:
        try:
            result = await self.client.table(Tables.ORDERS).select("*").eq(
                "customer_id", customer_id
            ).order("created_at", desc=True).execute()
        except Exception as e:
            raise StorageError(f"Order listing failed: {e}") from e
        return [Order(**row) for row in result.data]

    async def mark_cart_cleared(self, order_id: str) -> None:
        try:
            await self.client.table(Tables.ORDERS).update({
                "cart_cleared": True,
                "cart_cleared_at": datetime.now(timezone.utc).isoformat(),
            }).eq("order_id", order_id).execute()
        except Exception as e:
            raise StorageError(f"Order update failed: {e}") from e

    async def list_unsettled(self, created_before: datetime, limit: int = 100) -> List[Order]:
        try:
            result = await self.client.table(Tables.ORDERS).select("*").eq(
                "cart_cleared", False
            ).lt("created_at", created_before.isoformat()).order(
                "created_at"
            ).limit(limit).execute()
        except Exception as e:
            raise StorageError(f"Order listing failed: {e}") from e
        return [Order(**row) for row in result.data]


class MemoryOrderStore(OrderStore):
    """In-process order store for local development and tests."""

    def __init__(self):
        self._rows: Dict[str, dict] = {}

    async def create(self, order: Order) -> Order:
        if order.order_id in self._rows:
            raise StorageError(f"Duplicate order id {order.order_id}")
        self._rows[order.order_id] = order.to_row()
        return Order(**self._rows[order.order_id])

    async def get(self, order_id: str) -> Optional[Order]:
        row = self._rows.get(order_id)
        return Order(**row) if row else None

    async def list_by_customer(self, customer_id: str) -> List[Order]:
        # Insertion index breaks created_at ties
        rows = [
            (index, row) for index, row in enumerate(self._rows.values())
            if row["customer_id"] == customer_id
        ]
        orders = [(Order(**row), index) for index, row in rows]
        orders.sort(key=lambda pair: (pair[0].created_at, pair[1]), reverse=True)
        return [order for order, _ in orders]

    async def mark_cart_cleared(self, order_id: str) -> None:
        row = self._rows.get(order_id)
        if row is not None:
            row["cart_cleared"] = True
            row["cart_cleared_at"] = datetime.now(timezone.utc).isoformat()

    async def list_unsettled(self, created_before: datetime, limit: int = 100) -> List[Order]:
        orders = [Order(**row) for row in self._rows.values() if not row["cart_cleared"]]
        orders = [order for order in orders if order.created_at < created_before]
        orders.sort(key=lambda order: order.created_at)
        return orders[:limit]
