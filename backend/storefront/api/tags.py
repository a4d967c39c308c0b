"""Tag endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.errors import http_error
from storefront.core.exceptions import CatalogError
from storefront.db.base import get_db
from storefront.schemas.product import ProductResponse, TagCreate, TagResponse
from storefront.services import tags as tag_service
from storefront.services.products import get_products_by_tag

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_db)):
    return await tag_service.list_tags(db)


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(body: TagCreate, db: AsyncSession = Depends(get_db)):
    try:
        tag = await tag_service.create_tag(db, body)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return TagResponse.model_validate(tag)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(tag_id: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a tag; products carrying it simply lose it."""
    try:
        await tag_service.delete_tag(db, tag_id)
    except CatalogError as exc:
        raise http_error(exc) from exc


@router.get("/{tag_id}/products", response_model=list[ProductResponse])
async def list_tag_products(tag_id: UUID, db: AsyncSession = Depends(get_db)):
    return await get_products_by_tag(db, tag_id)
