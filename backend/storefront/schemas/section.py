"""Homepage section schemas."""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.product import Blank, JsonList, ProductResponse

SectionType = Literal["image", "video"]


class SectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: SectionType = "image"
    heading: Annotated[str | None, Blank] = Field(None, max_length=255)
    subheading: Annotated[str | None, Blank] = Field(None, max_length=500)
    link: Annotated[str | None, Blank] = Field(None, max_length=500)
    order: int = 0
    is_active: bool = True
    media_url: Annotated[str | None, Blank] = Field(None, max_length=500)
    product_ids: Annotated[list[UUID], JsonList] = Field(default_factory=list)


class SectionUpdate(BaseModel):
    """Partial update; only fields present in the form are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    type: SectionType | None = None
    heading: Annotated[str | None, Blank] = Field(None, max_length=255)
    subheading: Annotated[str | None, Blank] = Field(None, max_length=500)
    link: Annotated[str | None, Blank] = Field(None, max_length=500)
    order: int | None = None
    is_active: bool | None = None
    media_url: Annotated[str | None, Blank] = Field(None, max_length=500)
    product_ids: Annotated[list[UUID] | None, JsonList] = None


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    type: SectionType
    heading: str | None = None
    subheading: str | None = None
    media_url: str
    link: str | None = None
    order: int
    is_active: bool
    product_ids: list[UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class HomepageSection(SectionResponse):
    """An active section with its featured products resolved."""

    products: list[ProductResponse] = Field(default_factory=list)
