"""Unit tests for the category service and category endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.exceptions import (
    CategoryCycleError,
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCodeError,
)

from helpers import make_category, scalar_result, scalars_result


@pytest.fixture
def family():
    root = make_category("Men")
    child = make_category("Shirts", parent=root)
    grandchild = make_category("Formal", parent=child, image="/uploads/formal.jpg")
    other = make_category("Women")
    return root, child, grandchild, other


def _mock_db(*results):
    db = AsyncMock()
    db.add = MagicMock()
    db.execute.side_effect = list(results)
    return db


@pytest.mark.asyncio
async def test_create_category_derives_slug():
    from storefront.services.categories import create_category

    db = _mock_db(scalar_result(None))

    category = await create_category(db, "Winter Jackets")

    assert category.slug == "winter-jackets"
    assert category.parent_id is None
    db.add.assert_called_once_with(category)


@pytest.mark.asyncio
async def test_create_category_duplicate_name():
    """Creating category with existing name should fail."""
    from storefront.services.categories import create_category

    db = _mock_db(scalar_result(uuid.uuid4()))

    with pytest.raises(DuplicateCodeError) as exc_info:
        await create_category(db, "Electronics")

    assert exc_info.value.code == "duplicate_category"
    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_category_endpoint_returns_409():
    from storefront.api.categories import create_category

    db = _mock_db(scalar_result(uuid.uuid4()))

    with pytest.raises(HTTPException) as exc_info:
        await create_category(name="Electronics", parent_id=None, image=None, db=db)

    assert exc_info.value.status_code == 409
    assert "already exists" in str(exc_info.value.detail).lower()


@pytest.mark.asyncio
async def test_create_category_unknown_parent():
    from storefront.services.categories import create_category

    db = _mock_db(scalar_result(None))

    with pytest.raises(CategoryNotFoundError):
        await create_category(db, "Shirts", parent_id=uuid.uuid4())


# ── Re-parenting ───────────────────────────────────

@pytest.mark.asyncio
async def test_update_rejects_descendant_as_parent(family):
    from storefront.services.categories import update_category

    root, child, grandchild, other = family
    db = _mock_db(scalar_result(root), scalars_result([root, child, grandchild, other]))

    with pytest.raises(CategoryCycleError):
        await update_category(db, root.id, parent_id=grandchild.id)

    assert root.parent_id is None
    db.flush.assert_not_called()


@pytest.mark.asyncio
async def test_update_rejects_self_as_parent(family):
    from storefront.services.categories import update_category

    root, child, grandchild, other = family
    db = _mock_db(scalar_result(child), scalars_result([root, child, grandchild, other]))

    with pytest.raises(CategoryCycleError):
        await update_category(db, child.id, parent_id=child.id)


@pytest.mark.asyncio
async def test_update_moves_under_unrelated_category(family):
    from storefront.services.categories import update_category

    root, child, grandchild, other = family
    db = _mock_db(scalar_result(child), scalars_result([root, child, grandchild, other]))

    updated = await update_category(db, child.id, parent_id=other.id)

    assert updated.parent_id == other.id


@pytest.mark.asyncio
async def test_update_to_top_level_skips_cycle_check(family):
    from storefront.services.categories import update_category

    root, child, grandchild, other = family
    db = _mock_db(scalar_result(child))

    updated = await update_category(db, child.id, parent_id=None)

    assert updated.parent_id is None
    assert db.execute.await_count == 1


@pytest.mark.asyncio
async def test_update_cycle_endpoint_returns_409():
    from storefront.api.categories import update_category

    category_id = uuid.uuid4()
    with patch(
        "storefront.services.categories.update_category",
        AsyncMock(side_effect=CategoryCycleError(category_id, uuid.uuid4())),
    ):
        with pytest.raises(HTTPException) as exc_info:
            await update_category(
                category_id=category_id, name=None, parent_id=str(uuid.uuid4()), image=None, db=AsyncMock(),
            )

    assert exc_info.value.status_code == 409


# ── Delete ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_refused_while_subtree_has_products(family):
    from storefront.services.categories import delete_category

    root, child, grandchild, other = family
    db = _mock_db(
        scalar_result(root),
        scalars_result([root, child, grandchild, other]),
        scalar_result(2),
    )

    with patch("storefront.services.categories.delete_file") as delete_file:
        with pytest.raises(CategoryInUseError) as exc_info:
            await delete_category(db, root.id)

    assert exc_info.value.context["product_count"] == 2
    delete_file.assert_not_called()


@pytest.mark.asyncio
async def test_delete_removes_whole_subtree(family):
    from storefront.services.categories import delete_category

    root, child, grandchild, other = family
    db = _mock_db(
        scalar_result(root),
        scalars_result([root, child, grandchild, other]),
        scalar_result(0),
        MagicMock(),
    )

    with patch("storefront.services.categories.delete_file") as delete_file:
        deleted = await delete_category(db, root.id)

    assert deleted == [root.id, child.id, grandchild.id]
    assert other.id not in deleted
    delete_file.assert_called_once_with("/uploads/formal.jpg")
    assert db.execute.await_count == 4


@pytest.mark.asyncio
async def test_delete_in_use_endpoint_returns_409():
    from storefront.api.categories import delete_category

    category_id = uuid.uuid4()
    with patch(
        "storefront.services.categories.delete_category",
        AsyncMock(side_effect=CategoryInUseError(category_id, 3)),
    ):
        with pytest.raises(HTTPException) as exc_info:
            await delete_category(category_id=category_id, db=AsyncMock())

    assert exc_info.value.status_code == 409
    assert "existing products" in exc_info.value.detail


@pytest.mark.asyncio
async def test_delete_missing_category():
    from storefront.services.categories import delete_category

    db = _mock_db(scalar_result(None))

    with pytest.raises(CategoryNotFoundError):
        await delete_category(db, uuid.uuid4())


# ── Reads ──────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_categories_degrades_to_empty():
    from storefront.services.categories import list_categories

    db = AsyncMock()
    db.execute.side_effect = SQLAlchemyError("connection refused")

    assert await list_categories(db) == []


@pytest.mark.asyncio
async def test_category_options_are_indented(family):
    from storefront.services.categories import get_category_options

    root, child, grandchild, other = family
    db = _mock_db(scalars_result([root, child, grandchild, other]))

    options = await get_category_options(db)

    assert [(o.name, o.depth) for o in options] == [
        ("Men", 0), ("Shirts", 1), ("Formal", 2), ("Women", 0),
    ]


@pytest.mark.asyncio
async def test_get_category_by_slug_endpoint_not_found():
    from storefront.api.categories import get_category_by_slug

    db = _mock_db(scalar_result(None))

    with pytest.raises(HTTPException) as exc_info:
        await get_category_by_slug(slug="missing", db=db)

    assert exc_info.value.status_code == 404
