"""
Product Lookup Client - read-only catalog access for cart enrichment.

Any failure (timeout, 404, network error, malformed body) reads as
"unavailable" (None); callers treat enrichment as optional.
"""
import os
from decimal import Decimal
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from shopping.errors import DependencyError
from shopping.logging import get_logger, sanitize_id_for_logging
from shopping.money import parse_price

logger = get_logger(__name__)

PRODUCT_SERVICE_URL = os.environ.get("PRODUCT_SERVICE_URL", "http://localhost:8002")
PRODUCT_LOOKUP_TIMEOUT = float(os.environ.get("PRODUCT_LOOKUP_TIMEOUT", "2.0"))


class ProductInfo(BaseModel):
    """Catalog metadata used to enrich cart lines."""
    id: str
    name: Optional[str] = None
    price: Optional[Decimal] = None
    image: Optional[str] = None

    class Config:
        extra = "ignore"

    @field_validator("price", mode="before")
    @classmethod
    def convert_price(cls, v):
        return parse_price(v)


class ProductClient:
    """httpx client for GET /products/:id on the catalog service."""

    def __init__(
        self,
        base_url: str = PRODUCT_SERVICE_URL,
        timeout: float = PRODUCT_LOOKUP_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
        )

    async def fetch_product(self, product_id: str) -> Optional[ProductInfo]:
        """Fetch product metadata; None when unavailable for any reason."""
        try:
            return await self._get(product_id)
        except DependencyError as e:
            logger.warning(
                f"Product lookup unavailable for {sanitize_id_for_logging(product_id)}: {e.message}"
            )
            return None

    async def _get(self, product_id: str) -> Optional[ProductInfo]:
        try:
            response = await self._client.get(f"/products/{product_id}")
        except httpx.HTTPError as e:
            raise DependencyError(f"{type(e).__name__}: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise DependencyError(f"catalog responded {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise DependencyError("catalog returned invalid JSON") from e
        if not isinstance(data, dict):
            raise DependencyError("catalog returned unexpected payload")

        try:
            return ProductInfo(
                id=str(data.get("id") or data.get("_id") or product_id),
                name=data.get("name"),
                price=data.get("price"),
                image=data.get("image") or data.get("img"),
            )
        except PydanticValidationError as e:
            raise DependencyError(f"catalog payload rejected: {e.error_count()} errors") from e

    async def aclose(self) -> None:
        await self._client.aclose()
