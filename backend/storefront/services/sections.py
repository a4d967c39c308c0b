"""Homepage campaign sections: admin CRUD and the public listing."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.offers import utcnow
from storefront.core.config import settings
from storefront.core.exceptions import MediaRequiredError, SectionNotFoundError
from storefront.models.product import Product
from storefront.models.section import Section
from storefront.schemas.section import HomepageSection, SectionCreate, SectionResponse, SectionUpdate
from storefront.services.products import present_product
from storefront.services.storage import delete_file

logger = logging.getLogger(__name__)

# A null for these in an update means "leave unchanged"
REQUIRED_FIELDS = ("title", "type", "order", "is_active", "media_url", "product_ids")


def _is_stored_upload(path: str | None) -> bool:
    """External media URLs are never deleted, only files we wrote ourselves."""
    return bool(path) and path.startswith(f"{settings.UPLOAD_URL_PREFIX}/")


async def get_section(db: AsyncSession, section_id) -> Section | None:
    return await db.get(Section, section_id)


async def list_sections(db: AsyncSession) -> list[Section]:
    """Every section, active or not, in display order."""
    result = await db.execute(select(Section).order_by(Section.order, Section.created_at))
    return list(result.scalars().all())


async def create_section(db: AsyncSession, data: SectionCreate, uploaded_media: str | None = None) -> Section:
    """An uploaded file wins over a media URL typed into the form; one of them is required."""
    media_url = uploaded_media or data.media_url
    if not media_url:
        raise MediaRequiredError()

    section = Section(
        **data.model_dump(exclude={"media_url", "product_ids"}),
        media_url=media_url,
        product_ids=[str(pid) for pid in data.product_ids],
    )
    db.add(section)
    await db.flush()
    await db.refresh(section)

    logger.info(f"Created section {section.title!r} at position {section.order}")
    return section


async def update_section(
    db: AsyncSession,
    section_id: UUID,
    data: SectionUpdate,
    uploaded_media: str | None = None,
) -> Section:
    section = await get_section(db, section_id)
    if section is None:
        raise SectionNotFoundError(section_id)

    update_data = data.model_dump(exclude_unset=True)
    for key in REQUIRED_FIELDS:
        if key in update_data and update_data[key] is None:
            del update_data[key]
    if "product_ids" in update_data:
        update_data["product_ids"] = [str(pid) for pid in update_data["product_ids"]]

    if uploaded_media:
        if _is_stored_upload(section.media_url):
            delete_file(section.media_url)
        update_data["media_url"] = uploaded_media

    for key, value in update_data.items():
        setattr(section, key, value)

    await db.flush()
    await db.refresh(section)
    return section


async def delete_section(db: AsyncSession, section_id: UUID) -> None:
    section = await get_section(db, section_id)
    if section is None:
        raise SectionNotFoundError(section_id)

    media_url = section.media_url
    await db.delete(section)
    await db.flush()

    if _is_stored_upload(media_url):
        delete_file(media_url)


async def get_homepage_sections(db: AsyncSession, now: datetime | None = None) -> list[HomepageSection]:
    """
    Active sections in display order, each with up to
    HOMEPAGE_SECTION_PRODUCT_LIMIT featured products.

    Products are loaded in one query for all sections. Ids whose product no
    longer exists are skipped. Returns [] when the database fails.
    """
    try:
        result = await db.execute(
            select(Section)
            .where(Section.is_active.is_(True))
            .order_by(Section.order, Section.created_at)
        )
        sections = list(result.scalars().all())

        wanted = {pid for section in sections for pid in section.product_ids}
        products: dict[str, Product] = {}
        if wanted:
            product_result = await db.execute(
                select(Product).where(Product.id.in_([UUID(pid) for pid in wanted]))
            )
            products = {str(p.id): p for p in product_result.scalars().all()}
    except SQLAlchemyError:
        logger.exception("Failed to load homepage sections")
        return []

    now = now or utcnow()
    limit = settings.HOMEPAGE_SECTION_PRODUCT_LIMIT
    homepage = []
    for section in sections:
        featured = [products[pid] for pid in section.product_ids if pid in products][:limit]
        homepage.append(HomepageSection(
            **SectionResponse.model_validate(section).model_dump(),
            products=[present_product(p, now) for p in featured],
        ))
    return homepage
