"""Order response and event serializers."""
from typing import Any, Dict, List

from shopping.money import to_float
from .models import Order, OrderItem


def serialize_item(item: OrderItem) -> Dict[str, Any]:
    return {
        "productId": item.product_id,
        "name": item.name,
        "price": to_float(item.price),
        "quantity": item.quantity,
        "image": item.image,
    }


def serialize_items(order: Order) -> List[Dict[str, Any]]:
    return [serialize_item(item) for item in order.items]


def serialize_order(order: Order) -> Dict[str, Any]:
    """Order payload for API responses."""
    return {
        "orderId": order.order_id,
        "customerId": order.customer_id,
        "items": serialize_items(order),
        "amount": to_float(order.amount),
        "status": order.status.value,
        "metadata": order.metadata,
        "createdAt": order.created_at.isoformat(),
    }
