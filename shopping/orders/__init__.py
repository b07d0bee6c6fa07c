"""Orders package: models, store, coordinator."""
from .models import Order, OrderItem, OrderStatus
from .repository import MemoryOrderStore, OrderStore, SupabaseOrderStore
from .service import OrderCoordinator

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderStore",
    "MemoryOrderStore",
    "SupabaseOrderStore",
    "OrderCoordinator",
]
