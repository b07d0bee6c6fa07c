"""
Error messages and exception taxonomy for the shopping service.

Routers translate these into HTTP responses; services raise them at the
cart/order boundary.
"""

from typing import Iterable, Optional

# Cart errors
ERROR_MISSING_FIELDS = "Missing required fields"
ERROR_INVALID_QUANTITY = "Quantity must be at least 1"
ERROR_QUANTITY_REQUIRED = "Quantity is required"
ERROR_INVALID_PRICE = "Price must be a non-negative number"
ERROR_CART_NOT_FOUND = "Cart not found"
ERROR_ITEM_NOT_IN_CART = "Item not found in cart"
ERROR_CART_EMPTY = "Cart is empty"
ERROR_CART_BUSY = "Cart was modified concurrently, please retry"

# Order errors
ERROR_ORDER_NOT_FOUND = "Order not found"

# Infrastructure errors
ERROR_STORAGE_UNAVAILABLE = "Storage unavailable"
ERROR_UNAUTHORIZED = "Unauthorized"
ERROR_FORBIDDEN = "Buyer access required"


class ShoppingError(Exception):
    """Base exception for all cart/order business errors."""

    def __init__(self, message: str = "Shopping service error"):
        self.message = message
        super().__init__(self.message)


class ValidationError(ShoppingError):
    """Missing or invalid input; carries the offending field names."""

    def __init__(self, message: str = ERROR_MISSING_FIELDS, fields: Optional[Iterable[str]] = None):
        self.fields = list(fields or [])
        super().__init__(message)


class NotFoundError(ShoppingError):
    """Cart line, order or product does not exist."""
    pass


class ConflictError(ShoppingError):
    """Request conflicts with current state (empty cart, contention)."""
    pass


class EmptyCartError(ConflictError):
    """Checkout attempted on an absent or empty cart."""

    def __init__(self):
        super().__init__(ERROR_CART_EMPTY)


class VersionConflictError(ConflictError):
    """A conditional cart write lost a race; the mutation is retried."""

    def __init__(self, customer_id: str = "", expected_version: int = 0):
        self.customer_id = customer_id
        self.expected_version = expected_version
        super().__init__(ERROR_CART_BUSY)


class DependencyError(ShoppingError):
    """External collaborator (catalog, event transport) failed."""
    pass


class StorageError(ShoppingError):
    """Cart or order store could not be reached; never absorbed."""

    def __init__(self, message: str = ERROR_STORAGE_UNAVAILABLE):
        super().__init__(message)
