"""HTTP routers for the shopping service."""
from .cart import router as cart_router
from .cron import router as cron_router
from .orders import router as orders_router

__all__ = ["cart_router", "cron_router", "orders_router"]
