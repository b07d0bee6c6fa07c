"""
Shared Dependencies for Routers

Services are built once by the application lifespan (build_services),
stored on app.state and handed to handlers through Depends.
"""

import os
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request

from shopping.cart import CartManager, MemoryCartStore, RedisCartStore
from shopping.db import create_redis, create_supabase
from shopping.errors import (
    ConflictError,
    NotFoundError,
    ShoppingError,
    StorageError,
    ValidationError,
)
from shopping.logging import get_logger
from shopping.orders import MemoryOrderStore, OrderCoordinator, SupabaseOrderStore
from shopping.orders.service import STOCK_RESERVATION
from shopping.products import ProductClient
from shopping.queue import EventPublisher, create_qstash

logger = get_logger(__name__)

STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "redis").lower()


@dataclass
class ShoppingServices:
    """Long-lived collaborators shared by all requests."""
    cart_manager: CartManager
    orders: OrderCoordinator
    publisher: EventPublisher
    product_client: ProductClient

    async def aclose(self) -> None:
        """Cleanly close http clients."""
        await self.product_client.aclose()


async def build_services(backend: str = STORAGE_BACKEND) -> ShoppingServices:
    """Construct stores, clients and services for the given storage backend."""
    if backend == "memory":
        logger.warning("Using in-memory stores - carts and orders are not durable")
        cart_store = MemoryCartStore()
        order_store = MemoryOrderStore()
    elif backend == "redis":
        cart_store = RedisCartStore(create_redis())
        order_store = SupabaseOrderStore(await create_supabase())
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r} (expected redis or memory)")

    publisher = EventPublisher(create_qstash())
    product_client = ProductClient()
    cart_manager = CartManager(
        cart_store,
        publisher=publisher,
        product_client=product_client,
        reservation=STOCK_RESERVATION,
    )
    orders = OrderCoordinator(cart_manager, order_store, publisher, reservation=STOCK_RESERVATION)
    return ShoppingServices(
        cart_manager=cart_manager,
        orders=orders,
        publisher=publisher,
        product_client=product_client,
    )


def get_services(request: Request) -> ShoppingServices:
    return request.app.state.services


def get_cart_manager(services: ShoppingServices = Depends(get_services)) -> CartManager:
    return services.cart_manager


def get_order_coordinator(services: ShoppingServices = Depends(get_services)) -> OrderCoordinator:
    return services.orders


def to_http(error: ShoppingError) -> HTTPException:
    """Convert a business exception to an HTTP exception."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail={"error": error.message, "fields": error.fields})
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, ConflictError):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, StorageError):
        logger.error(f"Storage failure: {error.message}")
        return HTTPException(status_code=503, detail="Service temporarily unavailable")
    return HTTPException(status_code=500, detail=error.message)
