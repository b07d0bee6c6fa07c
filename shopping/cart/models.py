"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from shopping.errors import ERROR_INVALID_PRICE, ERROR_MISSING_FIELDS, ValidationError
from shopping.money import line_total, parse_price, sum_money, to_float


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CartItem:
    """Single line in the cart, keyed by product_id."""
    product_id: str
    name: str
    price: Decimal
    quantity: int = 1
    image: Optional[str] = None

    def __post_init__(self):
        self.product_id = str(self.product_id)
        price = parse_price(self.price)
        if price is None:
            raise ValidationError(ERROR_INVALID_PRICE, ["price"])
        self.price = price

    @property
    def total_price(self) -> Decimal:
        """Unit price x quantity."""
        return line_total(self.price, self.quantity)

    def copy(self) -> "CartItem":
        return CartItem(
            product_id=self.product_id,
            name=self.name,
            price=self.price,
            quantity=self.quantity,
            image=self.image,
        )

    def to_dict(self) -> dict:
        """Storage form; price kept as a string to stay exact."""
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "image": self.image,
        }

    def to_response(self) -> dict:
        """Wire form used by the HTTP API and outbound events."""
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": to_float(self.price),
            "quantity": self.quantity,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            price=data["price"],
            quantity=int(data["quantity"]),
            image=data.get("image"),
        )

    @classmethod
    def create(cls, product_id, name, price, image: Optional[str] = None) -> "CartItem":
        """Build a line from raw request fields, reporting every missing one."""
        missing = [
            field_name
            for field_name, value in (("productId", product_id), ("name", name), ("price", price))
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            raise ValidationError(ERROR_MISSING_FIELDS, missing)
        return cls(product_id=str(product_id), name=str(name), price=price, image=image or None)


@dataclass
class CheckoutClaim:
    """
    Lines taken out of the cart by a checkout in progress.

    The claim lives on the cart until the order is durably written (then it
    is settled) or the write fails (then its lines are merged back).
    """
    order_id: str
    items: List[CartItem]
    claimed_at: str = ""

    def __post_init__(self):
        if not self.claimed_at:
            self.claimed_at = _now()

    def claimed_before(self, cutoff: datetime) -> bool:
        return datetime.fromisoformat(self.claimed_at) <= cutoff

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "items": [item.to_dict() for item in self.items],
            "claimed_at": self.claimed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CheckoutClaim":
        return cls(
            order_id=data["order_id"],
            items=[CartItem.from_dict(item) for item in data.get("items", [])],
            claimed_at=data.get("claimed_at", ""),
        )


@dataclass
class Cart:
    """
    Per-customer cart.

    `version` is owned by the cart store and is not part of the stored
    payload. `claims` holds lines belonging to checkouts that are not yet
    settled; they are never part of `items` or the total.
    """
    customer_id: str
    items: List[CartItem] = field(default_factory=list)
    updated_at: str = ""
    claims: List[CheckoutClaim] = field(default_factory=list)
    version: int = 0

    def __post_init__(self):
        self.customer_id = str(self.customer_id)
        if not self.updated_at:
            self.updated_at = _now()

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total(self) -> Decimal:
        """Recomputed on every access, never cached."""
        return sum_money(item.total_price for item in self.items)

    def find(self, product_id: str) -> Optional[CartItem]:
        product_id = str(product_id)
        return next((item for item in self.items if item.product_id == product_id), None)

    def find_claim(self, order_id: str) -> Optional[CheckoutClaim]:
        return next((claim for claim in self.claims if claim.order_id == order_id), None)

    def snapshot(self) -> List[CartItem]:
        """Deep copy of the lines; never aliases the live cart."""
        return [item.copy() for item in self.items]

    def merge(self, item: CartItem) -> None:
        """Add a line, growing an existing line for the same product."""
        existing = self.find(item.product_id)
        if existing:
            existing.quantity += item.quantity
        else:
            self.items.append(item.copy())

    def touch(self) -> None:
        self.updated_at = _now()

    def to_dict(self) -> dict:
        """Convert to dictionary for Redis storage."""
        return {
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            "updated_at": self.updated_at,
            "claims": [claim.to_dict() for claim in self.claims],
        }

    def to_response(self) -> dict:
        """{items, total} as returned by every cart endpoint."""
        return {
            "items": [item.to_response() for item in self.items],
            "total": to_float(self.total),
        }

    @classmethod
    def from_dict(cls, data: dict, version: int = 0) -> "Cart":
        return cls(
            customer_id=data["customer_id"],
            items=[CartItem.from_dict(item) for item in data.get("items", [])],
            updated_at=data.get("updated_at", ""),
            claims=[CheckoutClaim.from_dict(claim) for claim in data.get("claims", [])],
            version=version,
        )

    @classmethod
    def empty(cls, customer_id: str) -> "Cart":
        return cls(customer_id=customer_id, items=[])
