"""Cart pricing against current catalog data."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.offers import effective_price, utcnow
from storefront.core.config import settings
from storefront.models.product import Product
from storefront.schemas.cart import CartItemIn, CartLine, CartQuote

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "STD"
SALE_TAG = "SALE"
NEW_TAG = "NEW"


def resolve_size(product: Product, requested: str | None) -> str:
    """Requested size, else the only variant's size, else the standard size."""
    if requested:
        return requested
    variants = product.variants or []
    if len(variants) == 1:
        return variants[0]["size"]
    return DEFAULT_SIZE


def display_tag(product: Product, unit_price: Decimal, now: datetime) -> str | None:
    """First tag name, else SALE for a discounted line, else NEW for a recently added product."""
    if product.tags:
        return product.tags[0].name
    if unit_price < product.price:
        return SALE_TAG
    if product.created_at and product.created_at > now - timedelta(days=settings.NEW_PRODUCT_DAYS):
        return NEW_TAG
    return None


async def quote_cart(
    db: AsyncSession,
    items: list[CartItemIn],
    now: datetime | None = None,
) -> CartQuote:
    """
    Price client-side cart items from the database.

    Unit prices come from `effective_price`, never from the client. Items
    whose product no longer exists are dropped.
    """
    if not items:
        return CartQuote(lines=[], cart_total=Decimal("0.00"), item_count=0)

    now = now or utcnow()

    result = await db.execute(
        select(Product).where(Product.id.in_([item.product_id for item in items]))
    )
    products = {str(p.id): p for p in result.scalars().all()}

    lines: list[CartLine] = []
    for item in items:
        product = products.get(str(item.product_id))
        if product is None:
            logger.info(f"Dropping unknown product {item.product_id} from cart")
            continue

        unit_price = effective_price(product, now)
        lines.append(CartLine(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            barcode=product.barcode,
            image=product.images[0] if product.images else None,
            size=resolve_size(product, item.size),
            quantity=item.quantity,
            unit_price=unit_price,
            base_price=product.price,
            line_total=unit_price * item.quantity,
            display_tag=display_tag(product, unit_price, now),
        ))

    return CartQuote(
        lines=lines,
        cart_total=sum((line.line_total for line in lines), Decimal("0.00")),
        item_count=sum(line.quantity for line in lines),
    )
