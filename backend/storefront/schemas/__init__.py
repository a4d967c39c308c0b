from pydantic import BaseModel

from storefront.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse, CategoryTreeNode, CategoryOption,
    CategoryListResponse,
)
from storefront.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, ProductListResponse,
    TagCreate, TagResponse, ReviewCreate, ReviewResponse, Variant, ProductTagsUpdate,
    SizeGuideCreate, SizeGuideResponse,
)
from storefront.schemas.catalog import CategorySection, CategoryPageResponse
from storefront.schemas.cart import CartItemIn, CartLine, CartQuote, CartQuoteRequest
from storefront.schemas.section import SectionCreate, SectionUpdate, SectionResponse, HomepageSection


def to_document(model: BaseModel) -> dict:
    """Plain JSON-safe dict: ids become str, datetimes ISO-8601, nested models recursed."""
    return model.model_dump(mode="json")


__all__ = [
    "CategoryCreate", "CategoryUpdate", "CategoryResponse", "CategoryTreeNode", "CategoryOption",
    "CategoryListResponse",
    "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",
    "TagCreate", "TagResponse", "ReviewCreate", "ReviewResponse", "Variant", "ProductTagsUpdate",
    "SizeGuideCreate", "SizeGuideResponse",
    "CategorySection", "CategoryPageResponse",
    "CartItemIn", "CartLine", "CartQuote", "CartQuoteRequest",
    "SectionCreate", "SectionUpdate", "SectionResponse", "HomepageSection",
    "to_document",
]
