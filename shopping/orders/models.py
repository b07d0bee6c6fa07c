"""Order models - immutable checkout records."""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from shopping.cart.models import CartItem
from shopping.money import line_total, sum_money, to_decimal


class OrderStatus(str, Enum):
    """Only PENDING is assigned here; later states belong to fulfillment."""
    PENDING = "pending"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class OrderItem(BaseModel):
    """One ordered line, frozen at checkout."""
    product_id: str
    name: str
    price: Decimal
    quantity: int
    image: Optional[str] = None

    class Config:
        extra = "ignore"

    @field_validator("price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)

    @property
    def total_price(self) -> Decimal:
        return line_total(self.price, self.quantity)

    @classmethod
    def from_cart_item(cls, item: CartItem) -> "OrderItem":
        return cls(
            product_id=item.product_id,
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            image=item.image,
        )


class Order(BaseModel):
    """Order record as stored in the orders table."""
    order_id: str
    customer_id: str
    items: List[OrderItem]
    amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    metadata: Dict[str, Any] = Field(default_factory=dict)
    cart_cleared: bool = False
    cart_cleared_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        extra = "ignore"  # Ignore unknown columns from DB

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return to_decimal(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v):
        return v or {}

    @classmethod
    def from_cart_items(
        cls,
        order_id: str,
        customer_id: str,
        items: List[CartItem],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "Order":
        """New pending order; amount is the exact sum of the snapshot lines."""
        order_items = [OrderItem.from_cart_item(item) for item in items]
        return cls(
            order_id=order_id,
            customer_id=customer_id,
            items=order_items,
            amount=sum_money(item.total_price for item in order_items),
            status=OrderStatus.PENDING,
            metadata=metadata or {},
        )

    def to_row(self) -> dict:
        """Row for insertion; Decimals become strings, datetimes ISO text."""
        return self.model_dump(mode="json")
