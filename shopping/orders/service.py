"""
Order Coordinator - converts a cart into an order.

Checkout sequence:
1. claim the cart: one conditional write moves its lines into a claim
   tagged with the new order id (an empty cart is rejected here)
2. write the order (pending, cart_cleared=False); on failure the claim is
   released and the lines go back into the cart
3. settle: drop the claim, then mark the order cart_cleared
4. publish events, best-effort

Step 3 may fail after step 2 committed. The order is kept and settlement
is retried by the cron sweep (settle_pending). A claim left behind by a
crash between steps 1 and 2 is resolved on the customer's next checkout
(recover_claims): settled if its order exists, released otherwise.
"""
import asyncio
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from shopping.cart import CartManager
from shopping.errors import ERROR_ORDER_NOT_FOUND, NotFoundError, ValidationError
from shopping.events import Channels, StockReservation, order_created_event, stock_change_event
from shopping.logging import get_logger, sanitize_id_for_logging
from shopping.money import to_float
from shopping.queue import EventPublisher
from .models import Order
from .repository import OrderStore
from .serializer import serialize_items

logger = get_logger(__name__)

STOCK_RESERVATION = StockReservation.parse(os.environ.get("STOCK_RESERVATION"))
CART_SETTLE_GRACE_SECONDS = int(os.environ.get("CART_SETTLE_GRACE_SECONDS", "60"))


def new_order_id() -> str:
    """128-bit random identifier."""
    return str(uuid.uuid4())


class OrderCoordinator:
    """Checkout and order queries."""

    def __init__(
        self,
        cart_manager: CartManager,
        order_store: OrderStore,
        publisher: EventPublisher,
        reservation: StockReservation = STOCK_RESERVATION,
        grace_seconds: int = CART_SETTLE_GRACE_SECONDS,
    ):
        self.cart_manager = cart_manager
        self.order_store = order_store
        self.publisher = publisher
        self.reservation = reservation
        self.grace_seconds = grace_seconds

    async def create_order(
        self,
        customer_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """Convert the customer's cart into a pending order."""
        if not customer_id:
            raise ValidationError("Customer ID is required", ["customerId"])

        await self.recover_claims(customer_id)

        order_id = new_order_id()
        items = await self.cart_manager.claim_checkout(customer_id, order_id)
        order = Order.from_cart_items(
            order_id=order_id,
            customer_id=customer_id,
            items=items,
            metadata=metadata,
        )
        try:
            order = await self.order_store.create(order)
        except Exception:
            await self._release_claim(customer_id, order_id)
            raise
        logger.info(
            f"Order {sanitize_id_for_logging(order.order_id)} created for "
            f"{sanitize_id_for_logging(customer_id)}: {len(order.items)} lines, amount {order.amount}"
        )

        if await self.settle_cart(order):
            order.cart_cleared = True

        await self._publish_order_events(order)
        return order

    async def get_order(self, order_id: str, customer_id: Optional[str] = None) -> Order:
        """Single order; another customer's order reads as not found."""
        order = await self.order_store.get(order_id) if order_id else None
        if order is None or (customer_id is not None and order.customer_id != customer_id):
            raise NotFoundError(ERROR_ORDER_NOT_FOUND)
        return order

    async def get_orders(self, customer_id: str) -> List[Order]:
        """Customer's orders, newest first."""
        if not customer_id:
            raise ValidationError("Customer ID is required", ["customerId"])
        return await self.order_store.list_by_customer(customer_id)

    async def settle_cart(self, order: Order) -> bool:
        """
        Drop the order's claim from the cart and mark the order.

        Idempotent. Returns False when either step failed; the order stays
        unmarked and the sweep retries it.
        """
        try:
            await self.cart_manager.settle_order(order.customer_id, order.order_id)
            await self.order_store.mark_cart_cleared(order.order_id)
        except Exception as e:
            logger.warning(
                f"Cart settlement deferred for order {sanitize_id_for_logging(order.order_id)}: {e}",
                exc_info=True,
            )
            return False
        return True

    async def settle_pending(self, grace_seconds: Optional[int] = None, limit: int = 100) -> Dict[str, int]:
        """Retry cart settlement for orders older than grace_seconds still unmarked."""
        grace = self.grace_seconds if grace_seconds is None else grace_seconds
        created_before = datetime.now(timezone.utc) - timedelta(seconds=grace)
        orders = await self.order_store.list_unsettled(created_before, limit=limit)

        settled = 0
        for order in orders:
            if await self.settle_cart(order):
                settled += 1

        if orders:
            logger.info(f"Cart settle sweep: {settled}/{len(orders)} orders settled")
        return {"pending": len(orders), "settled": settled, "failed": len(orders) - settled}

    async def recover_claims(self, customer_id: str) -> int:
        """
        Resolve the customer's checkout claims older than the grace period.

        Returns the number of claims resolved.
        """
        cart = await self.cart_manager.get_cart(customer_id)
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=self.grace_seconds)
        stale = [claim for claim in cart.claims if claim.claimed_before(cutoff)]

        for claim in stale:
            order = await self.order_store.get(claim.order_id)
            if order is not None:
                await self.settle_cart(order)
            else:
                logger.warning(
                    f"Releasing orphaned checkout claim {sanitize_id_for_logging(claim.order_id)} "
                    f"for {sanitize_id_for_logging(customer_id)}"
                )
                await self.cart_manager.release_checkout(customer_id, claim.order_id)
        return len(stale)

    async def _release_claim(self, customer_id: str, order_id: str) -> None:
        try:
            await self.cart_manager.release_checkout(customer_id, order_id)
        except Exception as e:
            # Left for recover_claims on the next checkout
            logger.error(
                f"Could not release checkout claim {sanitize_id_for_logging(order_id)}: {e}",
                exc_info=True,
            )

    async def _publish_order_events(self, order: Order) -> None:
        publications = [
            self.publisher.publish(
                Channels.NOTIFICATION_SERVICE,
                order_created_event(
                    customer_id=order.customer_id,
                    order_id=order.order_id,
                    items=serialize_items(order),
                    total=to_float(order.amount),
                ),
            )
        ]
        if self.reservation == StockReservation.ON_CHECKOUT:
            publications.extend(
                self.publisher.publish(
                    Channels.PRODUCT_SERVICE,
                    stock_change_event(item.product_id, -item.quantity),
                )
                for item in order.items
            )

        # The order is already committed; nothing raised here may reach the caller
        results = await asyncio.gather(*publications, return_exceptions=True)
        failed = [result for result in results if result is not True]
        if failed:
            logger.warning(
                f"Order {sanitize_id_for_logging(order.order_id)}: "
                f"{len(failed)} of {len(results)} events not delivered"
            )
