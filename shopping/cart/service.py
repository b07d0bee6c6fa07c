"""Cart manager service: per-customer cart rules over a versioned store."""
import os
from typing import Callable, List, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shopping.errors import (
    ERROR_CART_BUSY,
    ERROR_CART_NOT_FOUND,
    ERROR_INVALID_QUANTITY,
    ERROR_ITEM_NOT_IN_CART,
    ERROR_MISSING_FIELDS,
    ConflictError,
    EmptyCartError,
    NotFoundError,
    ValidationError,
    VersionConflictError,
)
from shopping.events import Channels, StockReservation, stock_change_event
from shopping.logging import get_logger, sanitize_id_for_logging
from shopping.products import ProductClient
from shopping.queue import EventPublisher
from .models import Cart, CartItem, CheckoutClaim
from .storage import CartStore

logger = get_logger(__name__)

CART_MAX_ATTEMPTS = int(os.environ.get("CART_MAX_ATTEMPTS", "3"))


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool):
        raise ValidationError(ERROR_INVALID_QUANTITY, ["quantity"])
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError(ERROR_INVALID_QUANTITY, ["quantity"])
    if qty != quantity and not isinstance(quantity, str):
        # 2.5 is not a quantity
        raise ValidationError(ERROR_INVALID_QUANTITY, ["quantity"])
    if qty < 1:
        raise ValidationError(ERROR_INVALID_QUANTITY, ["quantity"])
    return qty


class CartManager:
    """
    Manages shopping carts.

    Features:
    - Lines merged by product_id (quantities add, first-written metadata kept)
    - Every mutation is a versioned read-modify-write, retried on conflict
    - Optional catalog enrichment and reserve-on-add stock events
    """

    def __init__(
        self,
        store: CartStore,
        publisher: Optional[EventPublisher] = None,
        product_client: Optional[ProductClient] = None,
        reservation: StockReservation = StockReservation.ON_CHECKOUT,
        max_attempts: int = CART_MAX_ATTEMPTS,
        backoff: float = 0.05,
    ):
        self.store = store
        self.publisher = publisher
        self.product_client = product_client
        self.reservation = reservation
        self.max_attempts = max_attempts
        self.backoff = backoff

    async def get_cart(self, customer_id: str) -> Cart:
        """Current cart; an absent cart reads as empty."""
        self._require_customer(customer_id)
        return await self.store.load(customer_id)

    async def add_item(self, customer_id: str, item: CartItem, quantity: int = 1) -> Cart:
        """Add quantity of item, merging into an existing line for the same product."""
        self._require_customer(customer_id)
        if item is None:
            raise ValidationError(ERROR_MISSING_FIELDS, ["productId", "name", "price"])
        missing = [
            name for name, value in (("productId", item.product_id), ("name", item.name))
            if not value or not str(value).strip()
        ]
        if missing:
            raise ValidationError(ERROR_MISSING_FIELDS, missing)
        qty = _validate_quantity(quantity)

        image = item.image
        if not image and self.product_client is not None:
            product = await self.product_client.fetch_product(item.product_id)
            if product is not None and product.image:
                image = product.image

        def mutation(cart: Cart) -> None:
            existing = cart.find(item.product_id)
            if existing:
                existing.quantity += qty
            else:
                line = item.copy()
                line.quantity = qty
                line.image = image
                cart.items.append(line)

        cart = await self._mutate(customer_id, mutation)
        logger.info(
            f"Added {qty} x {sanitize_id_for_logging(item.product_id)} "
            f"to cart {sanitize_id_for_logging(customer_id)}"
        )

        if self.reservation == StockReservation.ON_ADD and self.publisher is not None:
            await self.publisher.publish(
                Channels.PRODUCT_SERVICE,
                stock_change_event(item.product_id, -qty),
            )
        return cart

    async def update_quantity(self, customer_id: str, product_id: str, quantity: int) -> Cart:
        """Overwrite one line's quantity; the line must exist and quantity be >= 1."""
        self._require_customer(customer_id)
        qty = _validate_quantity(quantity)

        def mutation(cart: Cart) -> None:
            if cart.version == 0 and cart.is_empty:
                raise NotFoundError(ERROR_CART_NOT_FOUND)
            line = cart.find(product_id)
            if line is None:
                raise NotFoundError(ERROR_ITEM_NOT_IN_CART)
            line.quantity = qty

        return await self._mutate(customer_id, mutation)

    async def remove_item(self, customer_id: str, product_id: str) -> Cart:
        """Remove a line; removing an absent product is a no-op."""
        self._require_customer(customer_id)
        cart = await self.store.load(customer_id)
        if cart.find(product_id) is None:
            return cart

        def mutation(cart: Cart) -> None:
            cart.items = [item for item in cart.items if item.product_id != str(product_id)]

        return await self._mutate(customer_id, mutation)

    async def clear_cart(self, customer_id: str) -> Cart:
        """Empty the cart; idempotent, and an absent cart stays absent."""
        self._require_customer(customer_id)
        cart = await self.store.load(customer_id)
        if cart.is_empty:
            return cart

        def mutation(cart: Cart) -> None:
            cart.items = []

        return await self._mutate(customer_id, mutation)

    async def claim_checkout(self, customer_id: str, order_id: str) -> List[CartItem]:
        """
        Move every line of the cart into a checkout claim for order_id.

        One conditional write, so of two concurrent checkouts only one sees
        the lines; the other finds the cart empty. Returns the claimed lines.
        """
        self._require_customer(customer_id)
        claimed: List[CartItem] = []

        def mutation(cart: Cart) -> None:
            if cart.is_empty:
                raise EmptyCartError()
            claimed[:] = cart.snapshot()
            cart.claims.append(CheckoutClaim(order_id=order_id, items=cart.snapshot()))
            cart.items = []

        await self._mutate(customer_id, mutation)
        logger.info(
            f"Cart {sanitize_id_for_logging(customer_id)} claimed by order "
            f"{sanitize_id_for_logging(order_id)}: {len(claimed)} lines"
        )
        return claimed

    async def release_checkout(self, customer_id: str, order_id: str) -> Cart:
        """Return a claim's lines to the cart (the order was never written)."""
        cart = await self.store.load(customer_id)
        if cart.find_claim(order_id) is None:
            return cart

        def mutation(cart: Cart) -> None:
            claim = cart.find_claim(order_id)
            if claim is None:
                return
            cart.claims.remove(claim)
            for item in claim.items:
                cart.merge(item)

        return await self._mutate(customer_id, mutation)

    async def settle_order(self, customer_id: str, order_id: str) -> Cart:
        """
        Drop the claim of a durably written order.

        Lines added to the cart after the claim are untouched. Settling an
        order twice, or one without a claim, changes nothing.
        """
        cart = await self.store.load(customer_id)
        if cart.find_claim(order_id) is None:
            return cart

        def mutation(cart: Cart) -> None:
            cart.claims = [claim for claim in cart.claims if claim.order_id != order_id]

        return await self._mutate(customer_id, mutation)

    async def _mutate(self, customer_id: str, mutation: Callable[[Cart], None]) -> Cart:
        """Load, apply mutation, conditionally save; retry on version conflicts."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.backoff, max=self.backoff * 10),
                retry=retry_if_exception_type(VersionConflictError),
                reraise=True,
            ):
                with attempt:
                    cart = await self.store.load(customer_id)
                    expected_version = cart.version
                    mutation(cart)
                    cart.touch()
                    await self.store.save(cart, expected_version)
        except VersionConflictError:
            logger.warning(
                f"Cart {sanitize_id_for_logging(customer_id)} still contended "
                f"after {self.max_attempts} attempts"
            )
            raise ConflictError(ERROR_CART_BUSY)
        return cart

    @staticmethod
    def _require_customer(customer_id: str) -> None:
        if not customer_id or not str(customer_id).strip():
            raise ValidationError("Customer ID is required", ["customerId"])
