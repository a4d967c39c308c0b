"""Homepage section endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.errors import http_error
from storefront.api.forms import discard_uploads, validate_form
from storefront.core.config import settings
from storefront.core.exceptions import CatalogError
from storefront.db.base import get_db
from storefront.schemas.section import HomepageSection, SectionCreate, SectionResponse, SectionUpdate
from storefront.services import sections as section_service
from storefront.services.storage import MEDIA_CONTENT_TYPES, has_content, save_upload

router = APIRouter(prefix="/sections", tags=["sections"])


async def save_media(file: UploadFile | None) -> str | None:
    """Store a section image or video; None when the file input was left empty."""
    if not has_content(file):
        return None
    return await save_upload(file, MEDIA_CONTENT_TYPES, settings.MAX_MEDIA_UPLOAD_SIZE_MB)


def section_fields(
    title: str | None,
    type: str | None,
    heading: str | None,
    subheading: str | None,
    link: str | None,
    order: str | None,
    is_active: str | None,
    products: str | None,
    media_url: str | None,
) -> dict:
    return {
        "title": title,
        "type": type,
        "heading": heading,
        "subheading": subheading,
        "link": link,
        "order": order,
        "is_active": is_active,
        "product_ids": products,
        "media_url": media_url,
    }


@router.get("", response_model=list[HomepageSection])
async def get_homepage_sections(db: AsyncSession = Depends(get_db)):
    """Active sections for the homepage, in display order."""
    return await section_service.get_homepage_sections(db)


@router.get("/admin", response_model=list[SectionResponse])
async def list_sections(db: AsyncSession = Depends(get_db)):
    return await section_service.list_sections(db)


@router.post("", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
async def create_section(
    title: str = Form(...),
    type: str | None = Form(None),
    heading: str | None = Form(None),
    subheading: str | None = Form(None),
    link: str | None = Form(None),
    order: str | None = Form(None),
    is_active: str | None = Form(None),
    products: str | None = Form(None),
    media_url: str | None = Form(None),
    media_file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    body = validate_form(SectionCreate, section_fields(
        title, type, heading, subheading, link, order, is_active, products, media_url,
    ))

    try:
        saved = await save_media(media_file)
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        section = await section_service.create_section(db, body, uploaded_media=saved)
    except CatalogError as exc:
        discard_uploads([saved] if saved else [])
        raise http_error(exc) from exc

    return SectionResponse.model_validate(section)


@router.put("/{section_id}", response_model=SectionResponse)
async def update_section(
    section_id: UUID,
    title: str | None = Form(None),
    type: str | None = Form(None),
    heading: str | None = Form(None),
    subheading: str | None = Form(None),
    link: str | None = Form(None),
    order: str | None = Form(None),
    is_active: str | None = Form(None),
    products: str | None = Form(None),
    media_url: str | None = Form(None),
    media_file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    body = validate_form(SectionUpdate, section_fields(
        title, type, heading, subheading, link, order, is_active, products, media_url,
    ))

    try:
        saved = await save_media(media_file)
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        section = await section_service.update_section(db, section_id, body, uploaded_media=saved)
    except CatalogError as exc:
        discard_uploads([saved] if saved else [])
        raise http_error(exc) from exc

    return SectionResponse.model_validate(section)


@router.delete("/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_section(section_id: UUID, db: AsyncSession = Depends(get_db)):
    try:
        await section_service.delete_section(db, section_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
