"""Catalog exceptions.

Every error carries:
- code: machine-readable error code ("duplicate_code", "category_cycle", ...)
- message: human-readable message shown next to admin forms
- context: extra data about the failure
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all catalog errors."""

    def __init__(self, code: str = "error", message: str = "", context: dict | None = None):
        self.code = code
        self.message = message
        self.context = context or {}
        super().__init__(message)


class DuplicateCodeError(CatalogError):
    """A unique field (SKU, barcode, tag name) is already taken."""

    def __init__(self, message: str = "SKU or Barcode already exists", context: dict | None = None, code: str = "duplicate_code"):
        super().__init__(code=code, message=message, context=context)


class CategoryCycleError(CatalogError):
    """Assigning the parent would make the category its own ancestor."""

    def __init__(self, category_id, parent_id):
        super().__init__(
            code="category_cycle",
            message="Category cannot be placed under itself or one of its sub-categories",
            context={"category_id": str(category_id), "parent_id": str(parent_id)},
        )


class CategoryNotFoundError(CatalogError):
    def __init__(self, category_id):
        super().__init__(
            code="not_found",
            message="Category not found",
            context={"category_id": str(category_id)},
        )


class ProductNotFoundError(CatalogError):
    def __init__(self, product_id):
        super().__init__(
            code="not_found",
            message="Product not found",
            context={"product_id": str(product_id)},
        )


class CategoryInUseError(CatalogError):
    """Products still reference a category in the subtree being deleted."""

    def __init__(self, category_id, product_count: int):
        super().__init__(
            code="category_in_use",
            message="Cannot delete category with existing products",
            context={"category_id": str(category_id), "product_count": product_count},
        )


class UploadRejectedError(CatalogError):
    """Uploaded file has a disallowed type or is too large."""

    def __init__(self, message: str):
        super().__init__(code="upload_rejected", message=message)


class TagNotFoundError(CatalogError):
    def __init__(self, tag_id):
        super().__init__(
            code="not_found",
            message="Tag not found",
            context={"tag_id": str(tag_id)},
        )


class SizeGuideNotFoundError(CatalogError):
    def __init__(self, size_guide_id):
        super().__init__(
            code="not_found",
            message="Size guide not found",
            context={"size_guide_id": str(size_guide_id)},
        )


class SectionNotFoundError(CatalogError):
    def __init__(self, section_id):
        super().__init__(
            code="not_found",
            message="Section not found",
            context={"section_id": str(section_id)},
        )


class MediaRequiredError(CatalogError):
    """A homepage section was submitted without a media file or URL."""

    def __init__(self):
        super().__init__(code="media_required", message="Media file (Image or Video) is required.")
