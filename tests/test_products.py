"""
Tests for the catalog lookup client
"""

import httpx
import pytest
from decimal import Decimal

from shopping.products import ProductClient


def client_for(handler):
    transport = httpx.MockTransport(handler)
    return ProductClient(http_client=httpx.AsyncClient(transport=transport, base_url="http://catalog.test"))


class TestProductClient:
    """Tests for fetch_product."""

    @pytest.mark.asyncio
    async def test_found(self):
        def handler(request):
            assert request.url.path == "/products/p1"
            return httpx.Response(200, json={"_id": "p1", "name": "Keyboard", "price": 10.5, "img": "kb.png"})

        client = client_for(handler)
        product = await client.fetch_product("p1")
        await client.aclose()

        assert product.id == "p1"
        assert product.price == Decimal("10.5")
        assert product.image == "kb.png"

    @pytest.mark.asyncio
    async def test_not_found(self):
        client = client_for(lambda request: httpx.Response(404, json={"message": "Product not found"}))

        assert await client.fetch_product("p1") is None

    @pytest.mark.asyncio
    async def test_server_error_reads_unavailable(self):
        client = client_for(lambda request: httpx.Response(500))

        assert await client.fetch_product("p1") is None

    @pytest.mark.asyncio
    async def test_timeout_reads_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = client_for(handler)

        assert await client.fetch_product("p1") is None

    @pytest.mark.asyncio
    async def test_invalid_json_reads_unavailable(self):
        client = client_for(lambda request: httpx.Response(200, content=b"<html>"))

        assert await client.fetch_product("p1") is None

    @pytest.mark.asyncio
    async def test_unexpected_payload_reads_unavailable(self):
        client = client_for(lambda request: httpx.Response(200, json=["p1"]))

        assert await client.fetch_product("p1") is None

    @pytest.mark.asyncio
    async def test_bad_price_is_dropped(self):
        client = client_for(lambda request: httpx.Response(200, json={"id": "p1", "price": "n/a"}))

        product = await client.fetch_product("p1")

        assert product.price is None
