"""
API Request Models

Fields are loosely typed; missing or malformed values are reported by the
cart rules as 400 with field names.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: Any = Field(None, alias="productId")
    name: Optional[str] = None
    price: Any = None
    quantity: Any = 1
    image: Optional[str] = None


class UpdateCartQuantityRequest(BaseModel):
    quantity: Any = None


class CreateOrderRequest(BaseModel):
    metadata: Dict[str, Any] = Field(default_factory=dict)
