"""Unit tests for the product service and product endpoints."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
import json
import re
import uuid

import pytest
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.core.exceptions import DuplicateCodeError, ProductNotFoundError, SizeGuideNotFoundError
from storefront.schemas.product import ProductCreate, ProductUpdate

from helpers import make_product, scalar_result, scalars_result


def _mock_db(*results):
    db = AsyncMock()
    db.add = MagicMock()
    if results:
        db.execute.side_effect = list(results)
    return db


def _create_data(**overrides):
    fields = dict(name="Oxford Shirt", price=Decimal("1500.00"), category_id=uuid.uuid4())
    fields.update(overrides)
    return ProductCreate(**fields)


# ── Helpers ────────────────────────────────────────

def test_aggregate_stock_sums_variants():
    from storefront.services.products import aggregate_stock

    variants = [{"size": "M", "stock": 3}, {"size": "L", "stock": 5}]

    assert aggregate_stock(variants, 99) == 8
    assert aggregate_stock([], 7) == 7
    assert aggregate_stock(None, None) == 0


def test_resolve_code_generates_for_auto_and_blank():
    from storefront.services.products import resolve_code

    for value in (None, "", "  ", "AUTO", "auto"):
        assert re.fullmatch(r"SKU-\d{6}", resolve_code(value, "SKU"))
    assert resolve_code(" SKU-123456 ", "SKU") == "SKU-123456"


def test_product_slug_is_name_plus_timestamp():
    from storefront.services.products import product_slug

    assert re.fullmatch(r"oxford-shirt-\d{13}", product_slug("Oxford Shirt"))


# ── Create ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_product_stock_from_variants():
    """Variants M:3 and L:5 persist an aggregate stock of 8."""
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]))
    data = _create_data(
        stock=50,
        variants=[{"size": "M", "stock": 3}, {"size": "L", "stock": 5}],
    )

    product = await create_product(db, data)

    assert product.stock == 8
    assert product.variants == [{"size": "M", "stock": 3}, {"size": "L", "stock": 5}]
    db.add.assert_called_once_with(product)
    db.flush.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_product_generates_codes_and_slug():
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]))

    product = await create_product(db, _create_data(sku="AUTO"), images=["/uploads/a.jpg"])

    assert product.sku.startswith("SKU-")
    assert product.barcode.startswith("BAR-")
    assert product.slug.startswith("oxford-shirt-")
    assert product.images == ["/uploads/a.jpg"]
    assert product.views == 0


@pytest.mark.asyncio
async def test_second_product_with_same_sku_is_rejected():
    """Second SKU-123456 fails with the uniqueness-conflict kind."""
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]), scalars_result([uuid.uuid4()]))

    await create_product(db, _create_data(sku="SKU-123456"))
    with pytest.raises(DuplicateCodeError) as exc_info:
        await create_product(db, _create_data(name="Other Shirt", sku="SKU-123456"))

    assert exc_info.value.code == "duplicate_code"
    assert exc_info.value.message == "SKU or Barcode already exists"
    assert db.add.call_count == 1


class _DriverError(Exception):
    """Driver exception carrying a SQLSTATE and constraint name, as asyncpg reports them."""

    def __init__(self, sqlstate, constraint_name=None):
        super().__init__(f"SQLSTATE {sqlstate}")
        self.sqlstate = sqlstate
        self.constraint_name = constraint_name


def _integrity_error(sqlstate, constraint_name=None):
    return IntegrityError("INSERT INTO products", {}, _DriverError(sqlstate, constraint_name))


@pytest.mark.asyncio
async def test_create_product_integrity_error_is_duplicate():
    """A lost race on the unique index reports the same error kind."""
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]))
    db.flush.side_effect = _integrity_error("23505", "products_sku_key")

    with pytest.raises(DuplicateCodeError) as exc_info:
        await create_product(db, _create_data(sku="SKU-123456"))

    assert exc_info.value.code == "duplicate_code"


@pytest.mark.asyncio
async def test_slug_collision_is_not_reported_as_code_duplicate():
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]))
    db.flush.side_effect = _integrity_error("23505", "products_slug_key")

    with pytest.raises(DuplicateCodeError) as exc_info:
        await create_product(db, _create_data())

    assert exc_info.value.code == "duplicate_slug"


@pytest.mark.asyncio
async def test_foreign_key_failure_is_not_a_duplicate_code():
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]))
    db.flush.side_effect = _integrity_error("23503", "products_size_guide_id_fkey")

    with pytest.raises(IntegrityError):
        await create_product(db, _create_data(size_guide_id=uuid.uuid4()))


@pytest.mark.asyncio
async def test_create_product_unknown_size_guide():
    from storefront.services.products import create_product

    db = _mock_db(scalars_result([]))
    db.get.side_effect = [MagicMock(), None]

    with pytest.raises(SizeGuideNotFoundError):
        await create_product(db, _create_data(size_guide_id=uuid.uuid4()))

    db.add.assert_not_called()


@pytest.mark.asyncio
async def test_create_product_endpoint_returns_409_on_duplicate():
    from storefront.api.products import create_product

    with patch(
        "storefront.services.products.create_product",
        AsyncMock(side_effect=DuplicateCodeError()),
    ):
        with pytest.raises(HTTPException) as exc_info:
            await create_product(body=_create_data(), images=None, db=_mock_db())

    assert exc_info.value.status_code == 409
    assert "already exists" in exc_info.value.detail


# ── Admin form coercion ────────────────────────────

def test_create_form_coerces_raw_strings():
    from storefront.api.products import product_create_form

    category_id = str(uuid.uuid4())
    data = product_create_form(
        name="Panjabi",
        price="1499.50",
        category_id=category_id,
        sku="",
        barcode="AUTO",
        description="",
        discount_price="999",
        sale_start_date="2026-11-01T00:00:00Z",
        sale_end_date="",
        stock="",
        variants=json.dumps([{"size": "M", "stock": "3"}]),
        size_guide_id="",
        tag_ids=None,
    )

    assert data.price == Decimal("1499.50")
    assert data.discount_price == Decimal("999")
    assert data.sale_start_date == datetime(2026, 11, 1, tzinfo=timezone.utc)
    assert data.sale_end_date is None
    assert data.sku is None
    assert data.stock == 0
    assert data.variants[0].stock == 3
    assert str(data.category_id) == category_id


def test_create_form_rejects_unparsable_price():
    from storefront.api.products import product_create_form

    with pytest.raises(RequestValidationError):
        product_create_form(
            name="Panjabi", price="abc", category_id=str(uuid.uuid4()),
            sku=None, barcode=None, description=None, discount_price=None,
            sale_start_date=None, sale_end_date=None, stock=None, variants=None,
            size_guide_id=None, tag_ids=None,
        )


# ── Update / delete ────────────────────────────────

@pytest.mark.asyncio
async def test_update_product_sku_conflict():
    from storefront.services.products import update_product

    current = make_product(sku="OLD-SKU")
    db = _mock_db(scalar_result(current), scalars_result([uuid.uuid4()]))

    with pytest.raises(DuplicateCodeError):
        await update_product(db, current.id, ProductUpdate(sku="EXISTING-SKU"))


@pytest.mark.asyncio
async def test_update_product_reaggregates_stock():
    from storefront.services.products import update_product

    current = make_product(stock=5)
    db = _mock_db(scalar_result(current))

    updated = await update_product(
        db, current.id,
        ProductUpdate(variants=[{"size": "M", "stock": 3}, {"size": "L", "stock": 5}]),
    )

    assert updated.stock == 8
    assert db.execute.await_count == 1


@pytest.mark.asyncio
async def test_update_product_clears_blank_discount_fields():
    from storefront.services.products import update_product

    current = make_product(discount_price=Decimal("80.00"))
    db = _mock_db(scalar_result(current))

    data = ProductUpdate.model_validate({"discount_price": "", "sale_end_date": ""})
    updated = await update_product(db, current.id, data)

    assert updated.discount_price is None
    assert updated.sale_end_date is None
    assert updated.name == "Linen Shirt"


@pytest.mark.asyncio
async def test_update_product_replaces_dropped_images():
    from storefront.services.products import update_product

    current = make_product(images=["/uploads/a.jpg", "/uploads/b.jpg"])
    db = _mock_db(scalar_result(current))

    with patch("storefront.services.products.delete_file") as delete_file:
        updated = await update_product(
            db, current.id, ProductUpdate(),
            new_images=["/uploads/c.jpg"], kept_images=["/uploads/a.jpg"],
        )

    assert updated.images == ["/uploads/a.jpg", "/uploads/c.jpg"]
    delete_file.assert_called_once_with("/uploads/b.jpg")


@pytest.mark.asyncio
async def test_update_missing_product():
    from storefront.services.products import update_product

    db = _mock_db(scalar_result(None))

    with pytest.raises(ProductNotFoundError):
        await update_product(db, uuid.uuid4(), ProductUpdate(name="X"))


@pytest.mark.asyncio
async def test_delete_product_removes_images():
    from storefront.services.products import delete_product

    product = make_product(images=["/uploads/a.jpg", "/uploads/b.jpg"])
    db = _mock_db(scalar_result(product))

    with patch("storefront.services.products.delete_file") as delete_file:
        await delete_product(db, product.id)

    db.delete.assert_awaited_once_with(product)
    assert delete_file.call_count == 2


# ── Storefront reads ───────────────────────────────

@pytest.mark.asyncio
async def test_product_detail_counts_view_and_expires_offer():
    from storefront.services.products import get_product_by_slug

    product = make_product(
        discount_price=Decimal("70.00"),
        sale_end_date=datetime.now(timezone.utc) - timedelta(days=2),
    )
    db = _mock_db(scalar_result(product.id), scalar_result(product))

    with patch("storefront.catalog.offers.schedule_offer_clear") as clear:
        result = await get_product_by_slug(db, product.slug)

    assert result.id == product.id
    assert result.discount_price is None
    assert result.effective_price == product.price
    clear.assert_called_once_with(product.id)


@pytest.mark.asyncio
async def test_product_detail_not_found():
    from storefront.services.products import get_product_by_slug

    db = _mock_db(scalar_result(None))

    assert await get_product_by_slug(db, "missing") is None
    assert db.execute.await_count == 1


@pytest.mark.asyncio
async def test_product_read_failure_degrades_to_none():
    from storefront.services.products import get_product_by_id

    db = AsyncMock()
    db.execute.side_effect = SQLAlchemyError("connection refused")

    assert await get_product_by_id(db, uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_product_endpoint_not_found():
    from storefront.api.products import get_product

    with patch("storefront.services.products.get_product_by_id", AsyncMock(return_value=None)):
        with pytest.raises(HTTPException) as exc_info:
            await get_product(product_id=uuid.uuid4(), db=_mock_db())

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_search_needs_two_characters():
    from storefront.services.products import search_products

    db = _mock_db()

    assert await search_products(db, "a") == []
    assert await search_products(db, None) == []
    db.execute.assert_not_called()


@pytest.mark.asyncio
async def test_search_puts_name_matches_first():
    from storefront.services.products import search_products

    by_name = make_product(name="Silk Saree")
    by_description = make_product(name="Wrap", description="pure silk blend")
    db = _mock_db(scalars_result([by_name]), scalars_result([by_description]))

    results = await search_products(db, "silk")

    assert [p.name for p in results] == ["Silk Saree", "Wrap"]


@pytest.mark.asyncio
async def test_admin_listing_keeps_stored_offer():
    from storefront.services.products import list_admin_products

    product = make_product(
        discount_price=Decimal("70.00"),
        sale_end_date=datetime.now(timezone.utc) - timedelta(days=2),
    )
    db = _mock_db(scalars_result([product]))

    with patch("storefront.catalog.offers.schedule_offer_clear") as clear:
        results = await list_admin_products(db)

    assert results[0].discount_price == Decimal("70.00")
    clear.assert_not_called()
