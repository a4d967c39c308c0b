"""Category schemas for API request/response."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class CategoryCreate(CategoryBase):
    parent_id: UUID | None = None


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    parent_id: UUID | None = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slug: str
    image: str | None = None
    parent_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class CategoryTreeNode(CategoryResponse):
    children: list[CategoryTreeNode] = Field(default_factory=list)


class CategoryOption(BaseModel):
    """One row of a flattened tree, ready for a select dropdown."""

    id: UUID
    name: str
    depth: int
    label: str


class CategoryListResponse(BaseModel):
    items: list[CategoryResponse]
    total: int
