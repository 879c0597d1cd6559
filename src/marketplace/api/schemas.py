"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer), kept separate from
internal Protean commands.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str
    city: str
    state: str | None = None
    postal_code: str
    country: str


class OrderLineSchema(BaseModel):
    product_id: str
    quantity: int


class PageResponse(BaseModel):
    items: list[dict[str, Any]]
    page: int
    limit: int
    total: int
    total_pages: int


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Product Schemas
# ---------------------------------------------------------------------------
class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    selling_price: float = Field(ge=0)
    cost_price: float | None = Field(default=None, ge=0)
    on_hand: int = Field(default=0, ge=0)
    status: str | None = None
    supplier_id: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Hand-thrown Mug",
                    "description": "Stoneware, 350ml",
                    "selling_price": 24.0,
                    "cost_price": 9.5,
                    "on_hand": 40,
                    "status": "active",
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    selling_price: float | None = Field(default=None, ge=0)
    cost_price: float | None = Field(default=None, ge=0)


class SetStockRequest(BaseModel):
    on_hand: int
    expected_on_hand: int | None = None


class ChangeStatusRequest(BaseModel):
    status: str
    override: bool = False


class ProductIdResponse(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Cart Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class SetCartQuantityRequest(BaseModel):
    quantity: int


class MergeGuestCartRequest(BaseModel):
    guest_owner_id: str


class CartItemResponse(BaseModel):
    product_id: str
    quantity: int
    added_at: datetime | None = None


class CartResponse(BaseModel):
    cart_id: str
    owner_id: str
    items: list[CartItemResponse]


# ---------------------------------------------------------------------------
# Order Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    items: list[OrderLineSchema]
    shipping_address: AddressSchema

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 2}],
                    "shipping_address": {
                        "street": "123 Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "postal_code": "62701",
                        "country": "US",
                    },
                }
            ]
        }
    }


class CheckoutRequest(BaseModel):
    shipping_address: AddressSchema
