"""Product, tag and review schemas.

Admin forms post every field as a string; blank strings are coerced to None
and list fields (variants, section products) may arrive JSON-encoded.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, computed_field

from storefront.catalog.offers import effective_price, is_offer_active


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _blank_to_zero(value):
    value = _blank_to_none(value)
    return 0 if value is None else value


def _parse_json_list(value):
    value = _blank_to_none(value)
    if value is None:
        return []
    if isinstance(value, str):
        return json.loads(value)
    return value


Blank = BeforeValidator(_blank_to_none)
JsonList = BeforeValidator(_parse_json_list)


# ── Tags ───────────────────────────────────────────
class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Annotated[str | None, Blank] = Field(None, max_length=20)


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    color: str | None = None


# ── Size guide / reviews ───────────────────────────
class SizeGuideCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class SizeGuideResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    image: str | None = None


class ReviewCreate(BaseModel):
    reviewer: str = Field(..., min_length=1, max_length=255)
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = None


class ReviewResponse(ReviewCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime


# ── Products ───────────────────────────────────────
class Variant(BaseModel):
    size: str = Field(..., min_length=1, max_length=50)
    stock: int = Field(0, ge=0)


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: Annotated[str | None, Blank] = Field(None, max_length=100)
    barcode: Annotated[str | None, Blank] = Field(None, max_length=100)
    description: Annotated[str | None, Blank] = None
    price: Decimal = Field(..., gt=0, decimal_places=2)
    discount_price: Annotated[Decimal | None, Blank] = Field(None, gt=0, decimal_places=2)
    sale_start_date: Annotated[datetime | None, Blank] = None
    sale_end_date: Annotated[datetime | None, Blank] = None
    category_id: UUID
    stock: Annotated[int, BeforeValidator(_blank_to_zero)] = Field(0, ge=0)
    variants: Annotated[list[Variant], JsonList] = Field(default_factory=list)
    size_guide_id: Annotated[UUID | None, Blank] = None
    tag_ids: list[UUID] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    name: str | None = Field(None, min_length=1, max_length=255)
    sku: Annotated[str | None, Blank] = Field(None, max_length=100)
    barcode: Annotated[str | None, Blank] = Field(None, max_length=100)
    description: Annotated[str | None, Blank] = None
    price: Decimal | None = Field(None, gt=0, decimal_places=2)
    discount_price: Annotated[Decimal | None, Blank] = Field(None, gt=0, decimal_places=2)
    sale_start_date: Annotated[datetime | None, Blank] = None
    sale_end_date: Annotated[datetime | None, Blank] = None
    category_id: UUID | None = None
    stock: Annotated[int | None, Blank] = Field(None, ge=0)
    variants: Annotated[list[Variant] | None, JsonList] = None
    size_guide_id: Annotated[UUID | None, Blank] = None


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    sku: str
    barcode: str
    description: str | None = None
    price: Decimal
    discount_price: Decimal | None = None
    sale_start_date: datetime | None = None
    sale_end_date: datetime | None = None
    stock: int
    variants: list[Variant] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    views: int = 0
    category_id: UUID
    category: CategorySummary | None = None
    size_guide: SizeGuideResponse | None = None
    tags: list[TagResponse] = Field(default_factory=list)
    reviews: list[ReviewResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def effective_price(self) -> Decimal:
        return effective_price(self)

    @computed_field
    @property
    def on_sale(self) -> bool:
        return is_offer_active(self)


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


class ProductTagsUpdate(BaseModel):
    tag_ids: list[UUID] = Field(default_factory=list)
