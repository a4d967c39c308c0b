"""Size guide endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.errors import http_error
from storefront.api.forms import discard_uploads, save_uploads, validate_form
from storefront.core.exceptions import CatalogError
from storefront.db.base import get_db
from storefront.schemas.product import SizeGuideCreate, SizeGuideResponse
from storefront.services import size_guides as size_guide_service

router = APIRouter(prefix="/size-guides", tags=["size-guides"])


@router.get("", response_model=list[SizeGuideResponse])
async def list_size_guides(db: AsyncSession = Depends(get_db)):
    """Guides to pick from on the product form."""
    return await size_guide_service.list_size_guides(db)


@router.post("", response_model=SizeGuideResponse, status_code=status.HTTP_201_CREATED)
async def create_size_guide(
    name: str = Form(...),
    image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    body = validate_form(SizeGuideCreate, {"name": name})

    try:
        saved = await save_uploads([image] if image else [])
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        guide = await size_guide_service.create_size_guide(db, body.name, image=saved[0] if saved else None)
    except Exception:
        discard_uploads(saved)
        raise

    return SizeGuideResponse.model_validate(guide)


@router.delete("/{size_guide_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_size_guide(size_guide_id: UUID, db: AsyncSession = Depends(get_db)):
    try:
        await size_guide_service.delete_size_guide(db, size_guide_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
