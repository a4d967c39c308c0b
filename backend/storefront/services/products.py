"""Product service: admin CRUD, storefront reads with lazy offer expiry, reviews."""

import logging
import random
import time
from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.offers import apply_offer_expiry
from storefront.core.config import settings
from storefront.core.exceptions import (
    CategoryNotFoundError,
    DuplicateCodeError,
    ProductNotFoundError,
    SizeGuideNotFoundError,
)
from storefront.core.text import contains_pattern, slugify
from storefront.models.category import Category
from storefront.models.product import Product, ProductReview, SizeGuide, Tag, product_tags
from storefront.schemas.product import ProductCreate, ProductResponse, ProductUpdate, ReviewCreate
from storefront.services.storage import delete_file

logger = logging.getLogger(__name__)

AUTO_CODE = "AUTO"
UNIQUE_VIOLATION = "23505"

# A null for these in an update means "leave unchanged"
REQUIRED_FIELDS = ("name", "price", "stock", "variants", "category_id")


# ── Helpers ────────────────────────────────────────

def generate_code(prefix: str) -> str:
    """PREFIX-NNNNNN with a random six-digit suffix."""
    return f"{prefix}-{random.randint(100000, 999999)}"


def resolve_code(value: str | None, prefix: str) -> str:
    """Blank or "AUTO" asks for a generated code."""
    if value is None or not value.strip() or value.strip().upper() == AUTO_CODE:
        return generate_code(prefix)
    return value.strip()


def product_slug(name: str) -> str:
    """Name slug suffixed with the creation time in ms, unique per product."""
    return f"{slugify(name)}-{int(time.time() * 1000)}"


def _variant_stock(variant) -> int:
    stock = variant["stock"] if isinstance(variant, dict) else variant.stock
    return int(stock or 0)


def aggregate_stock(variants: Sequence | None, stock: int | None) -> int:
    """
    Variants are the stock of record when present; their sum is the product
    stock. A product without variants keeps its own count.
    """
    if variants:
        return sum(_variant_stock(v) for v in variants)
    return int(stock or 0)


def present_product(product: Product, now: datetime | None = None) -> ProductResponse:
    """Serialize a product for the storefront, retiring an expired offer on the way."""
    return apply_offer_expiry(ProductResponse.model_validate(product), now)


async def get_product(db: AsyncSession, product_id) -> Product | None:
    result = await db.execute(select(Product).where(Product.id == product_id))
    return result.scalar_one_or_none()


async def _codes_taken(db: AsyncSession, sku: str | None = None, barcode: str | None = None, exclude_id=None) -> bool:
    conditions = []
    if sku is not None:
        conditions.append(Product.sku == sku)
    if barcode is not None:
        conditions.append(Product.barcode == barcode)
    if not conditions:
        return False

    query = select(Product.id).where(or_(*conditions))
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    existing = await db.execute(query)
    return existing.scalars().first() is not None


async def _ensure_category(db: AsyncSession, category_id) -> None:
    if await db.get(Category, category_id) is None:
        raise CategoryNotFoundError(category_id)


async def _ensure_size_guide(db: AsyncSession, size_guide_id) -> None:
    if size_guide_id is not None and await db.get(SizeGuide, size_guide_id) is None:
        raise SizeGuideNotFoundError(size_guide_id)


async def _load_tags(db: AsyncSession, tag_ids: Sequence[UUID]) -> list[Tag]:
    if not tag_ids:
        return []
    result = await db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
    return list(result.scalars().all())


def _violation(exc: IntegrityError) -> tuple[str | None, str]:
    """SQLSTATE and constraint name reported by the driver, if any."""
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    constraint = getattr(orig, "constraint_name", None)
    if constraint is None:
        constraint = getattr(orig.__cause__, "constraint_name", None)
    return sqlstate, constraint or ""


async def _flush(db: AsyncSession, sku: str, barcode: str) -> None:
    """Flush, reporting a lost uniqueness race as a duplicate. Other integrity errors propagate."""
    try:
        await db.flush()
    except IntegrityError as exc:
        sqlstate, constraint = _violation(exc)
        if sqlstate != UNIQUE_VIOLATION:
            raise
        logger.warning(f"Unique constraint {constraint or '?'} hit for sku={sku} barcode={barcode}")
        if "slug" in constraint:
            raise DuplicateCodeError(
                "Product with this slug already exists",
                context={"constraint": constraint},
                code="duplicate_slug",
            ) from exc
        raise DuplicateCodeError(context={"sku": sku, "barcode": barcode}) from exc


# ── Mutations ──────────────────────────────────────

async def create_product(
    db: AsyncSession,
    data: ProductCreate,
    images: Sequence[str] = (),
) -> Product:
    sku = resolve_code(data.sku, settings.SKU_PREFIX)
    barcode = resolve_code(data.barcode, settings.BARCODE_PREFIX)

    if await _codes_taken(db, sku=sku, barcode=barcode):
        raise DuplicateCodeError(context={"sku": sku, "barcode": barcode})

    await _ensure_category(db, data.category_id)
    await _ensure_size_guide(db, data.size_guide_id)

    fields = data.model_dump(exclude={"sku", "barcode", "tag_ids", "stock", "variants"})
    variants = [v.model_dump() for v in data.variants]
    product = Product(
        **fields,
        slug=product_slug(data.name),
        sku=sku,
        barcode=barcode,
        variants=variants,
        stock=aggregate_stock(variants, data.stock),
        images=list(images),
        views=0,
    )
    product.tags = await _load_tags(db, data.tag_ids)

    db.add(product)
    await _flush(db, sku, barcode)
    await db.refresh(product)

    logger.info(f"Created product {product.sku} in category {product.category_id}")
    return product


async def update_product(
    db: AsyncSession,
    product_id: UUID,
    data: ProductUpdate,
    new_images: Sequence[str] = (),
    kept_images: Sequence[str] | None = None,
) -> Product:
    """
    Apply the fields present in `data`.

    `kept_images` (when given) is the list of existing images to keep; the
    rest are removed from storage. `new_images` are appended.
    """
    product = await get_product(db, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    update_data = data.model_dump(exclude_unset=True)

    if "sku" in update_data:
        update_data["sku"] = resolve_code(update_data["sku"], settings.SKU_PREFIX)
    if "barcode" in update_data:
        update_data["barcode"] = resolve_code(update_data["barcode"], settings.BARCODE_PREFIX)

    new_sku = update_data.get("sku")
    new_barcode = update_data.get("barcode")
    changed_sku = new_sku if new_sku is not None and new_sku != product.sku else None
    changed_barcode = new_barcode if new_barcode is not None and new_barcode != product.barcode else None
    if await _codes_taken(db, sku=changed_sku, barcode=changed_barcode, exclude_id=product.id):
        raise DuplicateCodeError(context={"sku": new_sku, "barcode": new_barcode})

    for key in REQUIRED_FIELDS:
        if key in update_data and update_data[key] is None:
            del update_data[key]
    if "category_id" in update_data:
        await _ensure_category(db, update_data["category_id"])
    if "size_guide_id" in update_data:
        await _ensure_size_guide(db, update_data["size_guide_id"])

    for key, value in update_data.items():
        setattr(product, key, value)
    product.stock = aggregate_stock(product.variants, product.stock)

    if kept_images is not None:
        kept = [i for i in product.images if i in kept_images]
        for removed in (i for i in product.images if i not in kept_images):
            delete_file(removed)
        product.images = kept + list(new_images)
    elif new_images:
        product.images = list(product.images) + list(new_images)

    await _flush(db, product.sku, product.barcode)
    await db.refresh(product)
    return product


async def delete_product(db: AsyncSession, product_id: UUID) -> None:
    product = await get_product(db, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    images = list(product.images or [])
    await db.delete(product)
    await db.flush()

    for image in images:
        delete_file(image)


async def add_review(db: AsyncSession, product_id: UUID, data: ReviewCreate) -> ProductReview:
    if await db.get(Product, product_id) is None:
        raise ProductNotFoundError(product_id)

    review = ProductReview(product_id=product_id, **data.model_dump())
    db.add(review)
    await db.flush()
    await db.refresh(review)
    return review


# ── Storefront reads ───────────────────────────────

async def get_product_by_slug(db: AsyncSession, slug: str) -> ProductResponse | None:
    """Product detail: counts the view, then serves the normalized record."""
    try:
        bumped = await db.execute(
            update(Product)
            .where(Product.slug == slug)
            .values(views=Product.views + 1)
            .returning(Product.id)
        )
        product_id = bumped.scalar_one_or_none()
        if product_id is None:
            return None
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception(f"Failed to load product {slug}")
        return None
    return present_product(product) if product else None


async def get_product_by_id(db: AsyncSession, product_id) -> ProductResponse | None:
    try:
        product = await get_product(db, product_id)
    except SQLAlchemyError:
        logger.exception(f"Failed to load product {product_id}")
        return None
    return present_product(product) if product else None


async def list_products(db: AsyncSession) -> list[ProductResponse]:
    """Every product, newest first."""
    try:
        result = await db.execute(select(Product).order_by(Product.created_at.desc()))
        products = result.scalars().all()
    except SQLAlchemyError:
        logger.exception("Failed to list products")
        return []
    return [present_product(p) for p in products]


async def get_related_products(
    db: AsyncSession,
    category_id,
    exclude_id,
    limit: int | None = None,
) -> list[ProductResponse]:
    try:
        result = await db.execute(
            select(Product)
            .where(Product.category_id == category_id, Product.id != exclude_id)
            .limit(limit or settings.RELATED_PRODUCT_LIMIT)
        )
        products = result.scalars().all()
    except SQLAlchemyError:
        logger.exception(f"Failed to load related products for {exclude_id}")
        return []
    return [present_product(p) for p in products]


async def search_products(db: AsyncSession, query: str | None) -> list[ProductResponse]:
    """Name matches first, then products matching only on description."""
    if not query or len(query.strip()) < settings.SEARCH_MIN_QUERY_LENGTH:
        return []

    pattern = contains_pattern(query)
    try:
        name_result = await db.execute(
            select(Product)
            .where(Product.name.ilike(pattern, escape="\\"))
            .limit(settings.SEARCH_NAME_LIMIT)
        )
        name_matches = list(name_result.scalars().all())

        description_query = select(Product).where(Product.description.ilike(pattern, escape="\\"))
        if name_matches:
            description_query = description_query.where(Product.id.not_in([p.id for p in name_matches]))
        description_result = await db.execute(description_query.limit(settings.SEARCH_DESCRIPTION_LIMIT))
        description_matches = list(description_result.scalars().all())
    except SQLAlchemyError:
        logger.exception(f"Product search failed for {query!r}")
        return []

    return [present_product(p) for p in name_matches + description_matches]


# ── Admin reads ────────────────────────────────────

async def list_admin_products(db: AsyncSession) -> list[ProductResponse]:
    """Raw stored state for the back-office; offers are not touched."""
    result = await db.execute(select(Product).order_by(Product.created_at.desc()))
    return [ProductResponse.model_validate(p) for p in result.scalars().all()]


async def get_products_by_tag(db: AsyncSession, tag_id: UUID) -> list[ProductResponse]:
    result = await db.execute(
        select(Product)
        .join(product_tags, product_tags.c.product_id == Product.id)
        .where(product_tags.c.tag_id == tag_id)
        .order_by(Product.name)
    )
    return [ProductResponse.model_validate(p) for p in result.scalars().all()]
