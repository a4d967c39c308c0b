"""Tag service."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import DuplicateCodeError, ProductNotFoundError, TagNotFoundError
from storefront.core.text import slugify
from storefront.models.product import Product, Tag, product_tags
from storefront.schemas.product import TagCreate


async def list_tags(db: AsyncSession) -> list[Tag]:
    result = await db.execute(select(Tag).order_by(Tag.created_at.desc()))
    return list(result.scalars().all())


async def create_tag(db: AsyncSession, data: TagCreate) -> Tag:
    existing = await db.execute(select(Tag.id).where(Tag.name == data.name))
    if existing.scalar_one_or_none():
        raise DuplicateCodeError("Tag already exists", context={"name": data.name}, code="duplicate_tag")

    tag = Tag(name=data.name, slug=slugify(data.name), color=data.color)
    db.add(tag)
    await db.flush()
    await db.refresh(tag)
    return tag


async def delete_tag(db: AsyncSession, tag_id: UUID) -> None:
    """Delete a tag and detach it from every product carrying it."""
    await db.execute(delete(product_tags).where(product_tags.c.tag_id == tag_id))
    result = await db.execute(delete(Tag).where(Tag.id == tag_id))
    if result.rowcount == 0:
        raise TagNotFoundError(tag_id)


async def set_product_tags(db: AsyncSession, product_id: UUID, tag_ids: list[UUID]) -> Product:
    result = await db.execute(select(Product).where(Product.id == product_id))
    product = result.scalar_one_or_none()
    if product is None:
        raise ProductNotFoundError(product_id)

    tags = []
    if tag_ids:
        tag_result = await db.execute(select(Tag).where(Tag.id.in_(tag_ids)))
        tags = list(tag_result.scalars().all())
    product.tags = tags

    await db.flush()
    await db.refresh(product)
    return product
