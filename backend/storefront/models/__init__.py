"""SQLAlchemy models for the storefront catalog."""

from storefront.models.category import Category
from storefront.models.product import Product, ProductReview, SizeGuide, Tag, product_tags
from storefront.models.section import Section

__all__ = [
    "Category",
    "Product",
    "ProductReview",
    "Section",
    "SizeGuide",
    "Tag",
    "product_tags",
]
