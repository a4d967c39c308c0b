"""Descendant resolution over the category parent graph."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.tree import canonical_id, group_by_parent
from storefront.models.category import Category


def _as_uuid(value) -> UUID | None:
    """UUID form of an id; None when it is missing or malformed."""
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def collect_descendants(category_id, categories: Iterable) -> list:
    """
    All categories below `category_id` in a pre-fetched flat list.

    Pre-order per branch: a child is followed by its own descendants before
    the next child. The starting category is not included.
    """
    start = canonical_id(category_id)
    if start is None:
        return []

    children_of = group_by_parent(categories)
    descendants: list = []
    seen = {start}

    def walk(parent_key: str) -> None:
        for child in children_of.get(parent_key, []):
            key = canonical_id(child.id)
            if key in seen:
                continue
            seen.add(key)
            descendants.append(child)
            walk(key)

    walk(start)
    return descendants


async def resolve_descendants(
    db: AsyncSession,
    category_id,
    all_categories: Sequence | None = None,
) -> list:
    """
    Same result as `collect_descendants`.

    Pass `all_categories` when resolving repeatedly in one request; without
    it every visited node costs one child query.
    """
    if all_categories is not None:
        return collect_descendants(category_id, all_categories)
    start = _as_uuid(category_id)
    if start is None:
        return []

    descendants: list = []
    seen = {canonical_id(start)}

    async def walk(parent_id) -> None:
        result = await db.execute(
            select(Category)
            .where(Category.parent_id == parent_id)
            .order_by(Category.name)
        )
        for child in result.scalars().all():
            key = canonical_id(child.id)
            if key in seen:
                continue
            seen.add(key)
            descendants.append(child)
            await walk(child.id)

    await walk(start)
    return descendants


def family_ids(category_id, categories: Iterable) -> list[str]:
    """The category itself followed by every descendant id."""
    return [canonical_id(category_id)] + [
        canonical_id(c.id) for c in collect_descendants(category_id, categories)
    ]


def would_create_cycle(category_id, new_parent_id, categories: Iterable) -> bool:
    """True if putting `category_id` under `new_parent_id` makes it its own ancestor."""
    if new_parent_id is None:
        return False

    target = canonical_id(category_id)
    parent_of = {canonical_id(c.id): canonical_id(c.parent_id) for c in categories}

    current = canonical_id(new_parent_id)
    visited: set[str] = set()
    while current is not None:
        if current == target or current in visited:
            return True
        visited.add(current)
        current = parent_of.get(current)
    return False
