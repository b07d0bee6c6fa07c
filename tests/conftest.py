"""Pytest configuration and fixtures"""
import os
import pytest
from decimal import Decimal
from unittest.mock import Mock, AsyncMock

# Set test environment variables
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("AUTH_SECRET", "test_auth_secret")
os.environ.setdefault("CRON_SECRET", "test_cron_secret")
os.environ.setdefault("STOCK_RESERVATION", "on_checkout")
os.environ.setdefault("PRODUCT_SERVICE_URL", "http://catalog.test")

from shopping.cart import CartItem, CartManager, MemoryCartStore  # noqa: E402
from shopping.events import StockReservation  # noqa: E402
from shopping.orders import MemoryOrderStore, OrderCoordinator  # noqa: E402


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client with chainable table operations"""
    client = Mock()

    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.insert.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.lt.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.order.return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[]))

    client.table.return_value = table_mock

    return client


@pytest.fixture
def mock_publisher():
    """Event publisher that accepts every event"""
    publisher = Mock()
    publisher.publish = AsyncMock(return_value=True)
    return publisher


@pytest.fixture
def mock_product_client():
    """Catalog that is always unavailable"""
    client = Mock()
    client.fetch_product = AsyncMock(return_value=None)
    return client


@pytest.fixture
def cart_store():
    return MemoryCartStore()


@pytest.fixture
def order_store():
    return MemoryOrderStore()


@pytest.fixture
def cart_manager(cart_store, mock_publisher):
    """Cart manager with fast retry backoff"""
    return CartManager(
        cart_store,
        publisher=mock_publisher,
        reservation=StockReservation.ON_CHECKOUT,
        max_attempts=3,
        backoff=0.001,
    )


@pytest.fixture
def coordinator(cart_manager, order_store, mock_publisher):
    return OrderCoordinator(
        cart_manager,
        order_store,
        mock_publisher,
        reservation=StockReservation.ON_CHECKOUT,
    )


@pytest.fixture
def sample_item():
    """A single catalog item"""
    return CartItem(product_id="p1", name="Mechanical Keyboard", price=Decimal("10.00"), image="kb.png")


@pytest.fixture
def other_item():
    return CartItem(product_id="p2", name="USB Cable", price=Decimal("5.00"))
