"""Size guide service."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import SizeGuideNotFoundError
from storefront.models.product import SizeGuide
from storefront.services.storage import delete_file

logger = logging.getLogger(__name__)


async def list_size_guides(db: AsyncSession) -> list[SizeGuide]:
    result = await db.execute(select(SizeGuide).order_by(SizeGuide.name))
    return list(result.scalars().all())


async def create_size_guide(db: AsyncSession, name: str, image: str | None = None) -> SizeGuide:
    guide = SizeGuide(name=name, image=image)
    db.add(guide)
    await db.flush()
    await db.refresh(guide)
    return guide


async def delete_size_guide(db: AsyncSession, size_guide_id: UUID) -> None:
    """Delete a guide and its image; products referencing it drop the reference."""
    guide = await db.get(SizeGuide, size_guide_id)
    if guide is None:
        raise SizeGuideNotFoundError(size_guide_id)

    image = guide.image
    await db.delete(guide)
    await db.flush()
    delete_file(image)
    logger.info(f"Deleted size guide {size_guide_id}")
