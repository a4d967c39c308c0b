"""Cart quote schemas."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class CartItemIn(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)
    size: str | None = None


class CartLine(BaseModel):
    product_id: UUID
    name: str
    sku: str
    barcode: str
    image: str | None = None
    size: str
    quantity: int
    unit_price: Decimal
    base_price: Decimal
    line_total: Decimal
    display_tag: str | None = None


class CartQuote(BaseModel):
    lines: list[CartLine]
    cart_total: Decimal
    item_count: int


class CartQuoteRequest(BaseModel):
    items: list[CartItemIn] = Field(default_factory=list)
