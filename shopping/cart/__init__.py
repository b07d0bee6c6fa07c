"""Cart package: models, storage, and manager."""
from .models import CartItem, Cart, CheckoutClaim
from .service import CartManager
from .storage import CartStore, MemoryCartStore, RedisCartStore

__all__ = [
    "CartItem",
    "Cart",
    "CheckoutClaim",
    "CartManager",
    "CartStore",
    "MemoryCartStore",
    "RedisCartStore",
]
