"""
Cart Router

Every cart endpoint answers with the full cart as {items, total}.
"""
from fastapi import APIRouter, Depends, HTTPException

from shopping.auth import Buyer, verify_buyer
from shopping.cart import CartItem, CartManager
from shopping.errors import ERROR_QUANTITY_REQUIRED, ShoppingError
from shopping.logging import get_logger
from .deps import get_cart_manager, to_http
from .models import AddToCartRequest, UpdateCartQuantityRequest

logger = get_logger(__name__)

router = APIRouter(tags=["cart"])


@router.get("/cart")
async def get_cart(
    user: Buyer = Depends(verify_buyer),
    cart_manager: CartManager = Depends(get_cart_manager),
):
    """Get the caller's cart; total is recomputed on every read."""
    try:
        cart = await cart_manager.get_cart(user.id)
    except ShoppingError as e:
        raise to_http(e)
    return cart.to_response()


@router.post("/cart")
async def add_to_cart(
    request: AddToCartRequest,
    user: Buyer = Depends(verify_buyer),
    cart_manager: CartManager = Depends(get_cart_manager),
):
    """Add an item; an existing line for the product grows by quantity."""
    quantity = 1 if request.quantity in (None, "") else request.quantity
    try:
        item = CartItem.create(
            product_id=request.product_id,
            name=request.name,
            price=request.price,
            image=request.image,
        )
        cart = await cart_manager.add_item(user.id, item, quantity)
    except ShoppingError as e:
        raise to_http(e)
    return cart.to_response()


@router.patch("/cart/{product_id}")
async def update_cart_quantity(
    product_id: str,
    request: UpdateCartQuantityRequest,
    user: Buyer = Depends(verify_buyer),
    cart_manager: CartManager = Depends(get_cart_manager),
):
    """Overwrite one line's quantity (must be >= 1)."""
    if request.quantity is None or request.quantity == "":
        raise HTTPException(
            status_code=400,
            detail={"error": ERROR_QUANTITY_REQUIRED, "fields": ["quantity"]},
        )
    try:
        cart = await cart_manager.update_quantity(user.id, product_id, request.quantity)
    except ShoppingError as e:
        raise to_http(e)
    return cart.to_response()


@router.delete("/cart/{product_id}")
async def remove_from_cart(
    product_id: str,
    user: Buyer = Depends(verify_buyer),
    cart_manager: CartManager = Depends(get_cart_manager),
):
    """Remove a line; unknown products are ignored."""
    try:
        cart = await cart_manager.remove_item(user.id, product_id)
    except ShoppingError as e:
        raise to_http(e)
    return cart.to_response()


@router.delete("/cart")
async def clear_cart(
    user: Buyer = Depends(verify_buyer),
    cart_manager: CartManager = Depends(get_cart_manager),
):
    try:
        cart = await cart_manager.clear_cart(user.id)
    except ShoppingError as e:
        raise to_http(e)
    return cart.to_response()
