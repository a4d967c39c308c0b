"""Unit tests for offer evaluation, effective price and lazy expiry."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from storefront.catalog.offers import (
    apply_offer_expiry,
    clear_offer,
    effective_price,
    effective_price_expression,
    is_offer_active,
    offer_expired,
    schedule_offer_clear,
)

from helpers import make_product

NOW = datetime(2026, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _on_sale(start=None, end=None, discount="80.00", price="100.00"):
    return make_product(
        price=price,
        discount_price=Decimal(discount),
        sale_start_date=start,
        sale_end_date=end,
    )


# ── Active window ──────────────────────────────────

def test_end_equal_to_now_is_still_active():
    product = _on_sale(end=NOW)

    assert offer_expired(product, NOW) is False
    assert is_offer_active(product, NOW) is True
    assert effective_price(product, NOW) == Decimal("80.00")


def test_end_one_millisecond_ago_is_expired():
    product = _on_sale(end=NOW - timedelta(milliseconds=1))

    assert offer_expired(product, NOW) is True
    assert is_offer_active(product, NOW) is False
    assert effective_price(product, NOW) == Decimal("100.00")


def test_not_started_yet():
    product = _on_sale(start=NOW + timedelta(days=1))

    assert is_offer_active(product, NOW) is False
    assert effective_price(product, NOW) == Decimal("100.00")


def test_open_ended_window():
    assert is_offer_active(_on_sale(), NOW) is True
    assert is_offer_active(_on_sale(start=NOW - timedelta(days=3)), NOW) is True


def test_discount_not_below_price_is_ignored():
    product = _on_sale(discount="120.00")

    assert is_offer_active(product, NOW) is False
    assert effective_price(product, NOW) == Decimal("100.00")


def test_naive_dates_are_treated_as_utc():
    product = _on_sale(end=datetime(2026, 6, 1, 11, 0, 0))

    assert offer_expired(product, NOW) is True


@pytest.mark.parametrize(
    "discount, start, end",
    [
        (None, None, None),
        ("80.00", None, None),
        ("80.00", NOW + timedelta(hours=1), None),
        ("80.00", None, NOW - timedelta(hours=1)),
        ("150.00", NOW - timedelta(hours=1), NOW + timedelta(hours=1)),
    ],
)
def test_effective_price_never_exceeds_price(discount, start, end):
    product = make_product(
        price="100.00",
        discount_price=Decimal(discount) if discount else None,
        sale_start_date=start,
        sale_end_date=end,
    )

    price = effective_price(product, NOW)

    assert price <= product.price
    assert (price == product.discount_price) == is_offer_active(product, NOW)


def test_price_expression_renders_case():
    sql = str(effective_price_expression(NOW).compile())

    assert "CASE" in sql
    assert "discount_price" in sql


# ── Lazy expiry ────────────────────────────────────

def test_expiry_clears_record_and_schedules_write():
    product = _on_sale(start=NOW - timedelta(days=7), end=NOW - timedelta(days=1))
    clear = MagicMock()

    returned = apply_offer_expiry(product, NOW, clear=clear)

    assert returned is product
    assert product.discount_price is None
    assert product.sale_start_date is None
    assert product.sale_end_date is None
    clear.assert_called_once_with(product.id)


def test_expiry_is_read_idempotent():
    """Second evaluation sees cleared fields, returns the same data, writes nothing."""
    product = _on_sale(end=NOW - timedelta(days=1))
    clear = MagicMock()

    first = apply_offer_expiry(product, NOW, clear=clear)
    snapshot = (first.discount_price, first.sale_start_date, first.sale_end_date)
    second = apply_offer_expiry(product, NOW, clear=clear)

    assert (second.discount_price, second.sale_start_date, second.sale_end_date) == snapshot
    assert snapshot == (None, None, None)
    clear.assert_called_once()


def test_active_offer_is_untouched():
    product = _on_sale(end=NOW + timedelta(days=1))
    clear = MagicMock()

    apply_offer_expiry(product, NOW, clear=clear)

    assert product.discount_price == Decimal("80.00")
    clear.assert_not_called()


@pytest.mark.asyncio
async def test_clear_offer_updates_in_own_session():
    session = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session

    await clear_offer("product-id", session_factory=factory)

    session.execute.assert_awaited_once()
    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_detached_clear_is_logged(caplog):
    with patch(
        "storefront.catalog.offers.clear_offer",
        AsyncMock(side_effect=SQLAlchemyError("database unavailable")),
    ):
        with caplog.at_level(logging.ERROR, logger="storefront.catalog.offers"):
            task = schedule_offer_clear("product-id")
            await asyncio.gather(task, return_exceptions=True)
            await asyncio.sleep(0)

    assert "Failed to clear expired offer for product product-id" in caplog.text


@pytest.mark.asyncio
async def test_default_clear_is_detached_task():
    product = _on_sale(end=NOW - timedelta(days=1))

    with patch("storefront.catalog.offers.clear_offer", AsyncMock()) as clear:
        apply_offer_expiry(product, NOW)
        assert product.discount_price is None
        await asyncio.sleep(0)

    clear.assert_awaited_once_with(product.id)


@pytest.mark.asyncio
async def test_clear_offer_only_touches_expired_window():
    session = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session

    await clear_offer(uuid.uuid4(), session_factory=factory, now=NOW)

    stmt = session.execute.await_args.args[0]
    assert "products.sale_end_date <" in str(stmt)
    assert NOW in stmt.compile().params.values()
