"""Orders Router - checkout and order history."""
from typing import Optional

from fastapi import APIRouter, Depends

from shopping.auth import Buyer, verify_buyer
from shopping.errors import ShoppingError
from shopping.orders import OrderCoordinator
from shopping.orders.serializer import serialize_order
from .deps import get_order_coordinator, to_http
from .models import CreateOrderRequest

router = APIRouter(tags=["orders"])


@router.post("/orders", status_code=201)
async def create_order(
    request: Optional[CreateOrderRequest] = None,
    user: Buyer = Depends(verify_buyer),
    orders: OrderCoordinator = Depends(get_order_coordinator),
):
    """Check out the caller's cart."""
    metadata = request.metadata if request else {}
    try:
        order = await orders.create_order(user.id, metadata=metadata)
    except ShoppingError as e:
        raise to_http(e)
    return serialize_order(order)


@router.get("/orders")
async def get_orders(
    user: Buyer = Depends(verify_buyer),
    orders: OrderCoordinator = Depends(get_order_coordinator),
):
    """Caller's orders, newest first."""
    try:
        result = await orders.get_orders(user.id)
    except ShoppingError as e:
        raise to_http(e)
    return [serialize_order(order) for order in result]


@router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    user: Buyer = Depends(verify_buyer),
    orders: OrderCoordinator = Depends(get_order_coordinator),
):
    try:
        order = await orders.get_order(order_id, customer_id=user.id)
    except ShoppingError as e:
        raise to_http(e)
    return serialize_order(order)
