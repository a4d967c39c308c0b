"""Category landing page payload."""

from pydantic import BaseModel, Field

from storefront.schemas.category import CategoryResponse, CategoryTreeNode
from storefront.schemas.product import ProductResponse


class CategorySection(CategoryResponse):
    """A direct child of the page category with products from its whole subtree."""

    children: list[CategoryTreeNode] = Field(default_factory=list)
    products: list[ProductResponse] = Field(default_factory=list)
    count: int = 0


class CategoryPageResponse(BaseModel):
    main_category: CategoryResponse
    sections: list[CategorySection]
    main_products: list[ProductResponse]
