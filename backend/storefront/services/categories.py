"""Category service: admin mutations and storefront category reads."""

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.descendants import collect_descendants, would_create_cycle
from storefront.catalog.tree import build_category_tree, canonical_id, flatten_category_tree
from storefront.core.exceptions import (
    CategoryCycleError,
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCodeError,
)
from storefront.core.text import slugify
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.category import CategoryOption, CategoryResponse, CategoryTreeNode
from storefront.services.storage import delete_file

logger = logging.getLogger(__name__)

# Marks "parent not supplied" apart from "move to top level" (None)
UNSET = object()


async def get_category(db: AsyncSession, category_id) -> Category | None:
    result = await db.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()


async def load_all_categories(db: AsyncSession) -> list[Category]:
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def _ensure_slug_free(db: AsyncSession, slug: str, exclude_id=None) -> None:
    query = select(Category.id).where(Category.slug == slug)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    existing = await db.execute(query)
    if existing.scalar_one_or_none():
        raise DuplicateCodeError(
            "Category with this name already exists",
            context={"slug": slug},
            code="duplicate_category",
        )


# ── Mutations ──────────────────────────────────────

async def create_category(
    db: AsyncSession,
    name: str,
    parent_id: UUID | None = None,
    image: str | None = None,
) -> Category:
    """Create a category; the slug is derived from the name."""
    if parent_id is not None and await get_category(db, parent_id) is None:
        raise CategoryNotFoundError(parent_id)

    slug = slugify(name)
    await _ensure_slug_free(db, slug)

    category = Category(name=name, slug=slug, parent_id=parent_id, image=image)
    db.add(category)
    await db.flush()
    await db.refresh(category)

    logger.info(f"Created category {category.slug} (parent={parent_id})")
    return category


async def update_category(
    db: AsyncSession,
    category_id: UUID,
    *,
    name: str | None = None,
    parent_id=UNSET,
    image: str | None = None,
) -> Category:
    """
    Rename, re-parent or replace the image of a category.

    Re-parenting is rejected when the new parent is the category itself or
    any of its descendants.
    """
    category = await get_category(db, category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)

    if name and name != category.name:
        slug = slugify(name)
        await _ensure_slug_free(db, slug, exclude_id=category.id)
        category.name = name
        category.slug = slug

    if parent_id is not UNSET and canonical_id(parent_id) != canonical_id(category.parent_id):
        if parent_id is not None:
            all_categories = await load_all_categories(db)
            if not any(canonical_id(c.id) == canonical_id(parent_id) for c in all_categories):
                raise CategoryNotFoundError(parent_id)
            if would_create_cycle(category.id, parent_id, all_categories):
                logger.warning(f"Rejected parent {parent_id} for category {category.id}: cycle")
                raise CategoryCycleError(category.id, parent_id)
        category.parent_id = parent_id

    if image:
        old_image = category.image
        category.image = image
        delete_file(old_image)

    await db.flush()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category_id: UUID) -> list[UUID]:
    """
    Delete a category together with its whole subtree and their images.

    Refused while any product is filed under a category of the subtree.
    Returns the deleted ids.
    """
    category = await get_category(db, category_id)
    if category is None:
        raise CategoryNotFoundError(category_id)

    all_categories = await load_all_categories(db)
    subtree = [category] + collect_descendants(category.id, all_categories)
    ids = [c.id for c in subtree]

    products_count = await db.execute(
        select(func.count()).select_from(Product).where(Product.category_id.in_(ids))
    )
    in_use = products_count.scalar_one()
    if in_use > 0:
        raise CategoryInUseError(category_id, in_use)

    images = [c.image for c in subtree if c.image]
    await db.execute(delete(Category).where(Category.id.in_(ids)))
    await db.flush()

    for image in images:
        delete_file(image)

    logger.info(f"Deleted category {category.slug} and {len(ids) - 1} descendants")
    return ids


# ── Reads ──────────────────────────────────────────

async def list_categories(db: AsyncSession) -> list[CategoryResponse]:
    """Flat list sorted by name."""
    try:
        categories = await load_all_categories(db)
    except SQLAlchemyError:
        logger.exception("Failed to load categories")
        return []
    return [CategoryResponse.model_validate(c) for c in categories]


async def get_category_tree(db: AsyncSession) -> list[CategoryTreeNode]:
    try:
        categories = await load_all_categories(db)
    except SQLAlchemyError:
        logger.exception("Failed to load category tree")
        return []
    return build_category_tree(categories)


async def get_category_options(db: AsyncSession) -> list[CategoryOption]:
    """Indented options for parent/category pickers."""
    return flatten_category_tree(await get_category_tree(db))


async def get_top_categories(db: AsyncSession) -> list[CategoryResponse]:
    try:
        result = await db.execute(
            select(Category).where(Category.parent_id.is_(None)).order_by(Category.name)
        )
        categories = result.scalars().all()
    except SQLAlchemyError:
        logger.exception("Failed to load top categories")
        return []
    return [CategoryResponse.model_validate(c) for c in categories]


async def get_category_by_slug(db: AsyncSession, slug: str) -> CategoryResponse | None:
    try:
        result = await db.execute(select(Category).where(Category.slug == slug))
        category = result.scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception(f"Failed to load category {slug}")
        return None
    return CategoryResponse.model_validate(category) if category else None
