"""
Product offer evaluation.

A discount is active only while `discount_price < price` and the current time
lies inside `[sale_start_date, sale_end_date]` (either bound may be open).
Expired discounts are retired lazily: the first read that sees a past
`sale_end_date` clears the fields on the record it returns and schedules the
same clear against the database without waiting for it.

Reporting code must apply `is_offer_active` / `effective_price_expression`
rather than trusting stored discount fields, which are only cleared on read.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from functools import partial

from sqlalchemy import and_, case, or_, update

from storefront.db.base import async_session_factory
from storefront.models.product import Product

logger = logging.getLogger(__name__)

# Strong references to in-flight clears so they are not garbage collected
_background_tasks: set[asyncio.Task] = set()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime | None) -> datetime | None:
    """Naive datetimes are taken as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def offer_expired(product, now: datetime | None = None) -> bool:
    """True when `sale_end_date` is set and strictly in the past."""
    end = _aware(product.sale_end_date)
    if end is None:
        return False
    return (_aware(now) or utcnow()) > end


def is_offer_active(product, now: datetime | None = None) -> bool:
    discount = product.discount_price
    if discount is None or not discount < product.price:
        return False

    now = _aware(now) or utcnow()
    start = _aware(product.sale_start_date)
    end = _aware(product.sale_end_date)
    return (start is None or start <= now) and (end is None or now <= end)


def effective_price(product, now: datetime | None = None) -> Decimal:
    """The price actually charged; never above `product.price`."""
    if is_offer_active(product, now):
        return product.discount_price
    return product.price


def effective_price_expression(now: datetime | None = None):
    """SQL form of `effective_price`, for filtering and sorting in queries."""
    now = _aware(now) or utcnow()
    active = and_(
        Product.discount_price.is_not(None),
        Product.discount_price < Product.price,
        or_(Product.sale_start_date.is_(None), Product.sale_start_date <= now),
        or_(Product.sale_end_date.is_(None), Product.sale_end_date >= now),
    )
    return case((active, Product.discount_price), else_=Product.price)


async def clear_offer(product_id, session_factory=None, now: datetime | None = None) -> None:
    """
    Null out the discount fields of one product in its own transaction.

    Only an offer that is still past its end date is cleared, so a window
    re-set by an admin after the read survives a late clear.
    """
    factory = session_factory or async_session_factory
    async with factory() as session:
        await session.execute(
            update(Product)
            .where(Product.id == product_id, Product.sale_end_date < (_aware(now) or utcnow()))
            .values(discount_price=None, sale_start_date=None, sale_end_date=None)
        )
        await session.commit()


def _on_clear_done(product_id, task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.warning(f"Offer clear for product {product_id} was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Failed to clear expired offer for product {product_id}", exc_info=exc)


def schedule_offer_clear(product_id) -> asyncio.Task:
    """Start the persistence clear as a detached task."""
    task = asyncio.get_running_loop().create_task(clear_offer(product_id))
    _background_tasks.add(task)
    task.add_done_callback(partial(_on_clear_done, product_id))
    return task


def apply_offer_expiry(
    product,
    now: datetime | None = None,
    clear: Callable | None = None,
):
    """
    Retire an expired discount on `product` and return it.

    The in-memory record is corrected before returning, so the caller never
    sees stale discount data even if the detached write is still running.
    Calling it again on an already cleared record changes nothing.
    """
    if not offer_expired(product, now):
        return product

    logger.info(f"Offer on product {product.id} ended at {product.sale_end_date}, clearing")
    product.discount_price = None
    product.sale_start_date = None
    product.sale_end_date = None
    (clear or schedule_offer_clear)(product.id)
    return product
