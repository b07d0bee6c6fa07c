"""
Domain events published to external subscribers (inventory, notifications).

Events are transient: they are built, handed to the publisher and dropped.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class EventType(str, Enum):
    UPDATE_PRODUCT_STOCK = "UPDATE_PRODUCT_STOCK"
    ORDER_CREATED = "ORDER_CREATED"


class Channels:
    """Logical destinations an event can be published to."""

    PRODUCT_SERVICE = "PRODUCT_SERVICE"
    NOTIFICATION_SERVICE = "NOTIFICATION_SERVICE"


class StockReservation(str, Enum):
    """
    When inventory is told about purchased quantities.

    ON_CHECKOUT: cart edits are inventory-neutral; checkout emits the decrements.
    ON_ADD: every add-to-cart emits a decrement (reserve on add).
    """

    ON_ADD = "on_add"
    ON_CHECKOUT = "on_checkout"

    @classmethod
    def parse(cls, value: str | None) -> "StockReservation":
        try:
            return cls((value or cls.ON_CHECKOUT.value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown stock reservation policy: {value!r} (expected on_add or on_checkout)"
            )


@dataclass
class DomainEvent:
    event_type: EventType
    payload: dict
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_message(self) -> dict:
        """Message body as consumed by subscribers."""
        return {"event": self.event_type.value, "data": self.payload}


def stock_change_event(product_id: str, quantity_change: int) -> DomainEvent:
    return DomainEvent(
        EventType.UPDATE_PRODUCT_STOCK,
        {"productId": str(product_id), "quantityChange": quantity_change},
    )


def order_created_event(customer_id: str, order_id: str, items: List[dict], total: float) -> DomainEvent:
    return DomainEvent(
        EventType.ORDER_CREATED,
        {
            "userId": customer_id,
            "order": {"orderId": order_id, "items": items, "total": total},
        },
    )
