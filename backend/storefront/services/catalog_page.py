"""
Category landing page aggregation.

Page request -> category tree -> subtree expansion -> product query per
direct child -> offer normalization -> serialized payload.
"""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.descendants import family_ids
from storefront.catalog.offers import effective_price_expression, utcnow
from storefront.catalog.tree import build_category_tree, canonical_id
from storefront.core.config import settings
from storefront.core.text import contains_pattern
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.catalog import CategoryPageResponse, CategorySection
from storefront.schemas.category import CategoryResponse
from storefront.services.products import present_product

logger = logging.getLogger(__name__)


def product_filters(
    search: str | None,
    min_price: Decimal | None,
    max_price: Decimal | None,
    now: datetime,
) -> list:
    """Name search plus a price window applied to the effective price."""
    filters = []
    if search and search.strip():
        filters.append(Product.name.ilike(contains_pattern(search), escape="\\"))
    if min_price is not None or max_price is not None:
        price = effective_price_expression(now)
        if min_price is not None:
            filters.append(price >= min_price)
        if max_price is not None:
            filters.append(price <= max_price)
    return filters


async def _subtree_products(db: AsyncSession, ids: list[str], filters: list, limit: int) -> list[Product]:
    result = await db.execute(
        select(Product)
        .where(Product.category_id.in_([UUID(i) for i in ids]), *filters)
        .order_by(Product.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def _subtree_count(db: AsyncSession, ids: list[str], filters: list) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Product)
        .where(Product.category_id.in_([UUID(i) for i in ids]), *filters)
    )
    return result.scalar_one()


async def get_category_page_data(
    db: AsyncSession,
    slug: str,
    search: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    now: datetime | None = None,
) -> CategoryPageResponse | None:
    """
    Everything a category landing page renders.

    One section per direct child, each carrying that child's subtree and the
    newest products filed anywhere under it; sections without products are
    left out. `main_products` spans the whole family of the page category.
    Returns None for an unknown slug or when the database fails.
    """
    now = now or utcnow()
    try:
        result = await db.execute(select(Category).where(Category.slug == slug))
        main_category = result.scalar_one_or_none()
        if main_category is None:
            return None

        # One read of the whole collection feeds every subtree expansion below
        all_result = await db.execute(select(Category).order_by(Category.name))
        all_categories = list(all_result.scalars().all())

        filters = product_filters(search, min_price, max_price, now)
        main_key = canonical_id(main_category.id)
        direct_children = [c for c in all_categories if canonical_id(c.parent_id) == main_key]

        sections: list[CategorySection] = []
        for child in direct_children:
            ids = family_ids(child.id, all_categories)
            products = await _subtree_products(db, ids, filters, settings.CATEGORY_SECTION_PRODUCT_LIMIT)
            if not products:
                continue
            count = await _subtree_count(db, ids, filters)
            sections.append(CategorySection(
                **CategoryResponse.model_validate(child).model_dump(),
                children=build_category_tree(all_categories, child.id),
                products=[present_product(p, now) for p in products],
                count=count,
            ))

        main_products = await _subtree_products(
            db, family_ids(main_category.id, all_categories), filters, settings.CATEGORY_MAIN_PRODUCT_LIMIT,
        )
    except SQLAlchemyError:
        logger.exception(f"Failed to build category page for {slug}")
        return None

    return CategoryPageResponse(
        main_category=CategoryResponse.model_validate(main_category),
        sections=sections,
        main_products=[present_product(p, now) for p in main_products],
    )
