"""Category endpoints: admin CRUD, navigation trees and the landing page payload."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.errors import http_error
from storefront.api.forms import discard_uploads, save_uploads, validate_form
from storefront.core.exceptions import CatalogError
from storefront.db.base import get_db
from storefront.schemas.catalog import CategoryPageResponse
from storefront.schemas.category import (
    CategoryCreate,
    CategoryListResponse,
    CategoryOption,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
)
from storefront.services import categories as category_service
from storefront.services.catalog_page import get_category_page_data

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(db: AsyncSession = Depends(get_db)):
    """All categories, flat, sorted by name."""
    items = await category_service.list_categories(db)
    return CategoryListResponse(items=items, total=len(items))


@router.get("/tree", response_model=list[CategoryTreeNode])
async def get_category_tree(db: AsyncSession = Depends(get_db)):
    return await category_service.get_category_tree(db)


@router.get("/options", response_model=list[CategoryOption])
async def get_category_options(db: AsyncSession = Depends(get_db)):
    """Depth-indented options for category pickers."""
    return await category_service.get_category_options(db)


@router.get("/top", response_model=list[CategoryResponse])
async def get_top_categories(db: AsyncSession = Depends(get_db)):
    return await category_service.get_top_categories(db)


@router.get("/slug/{slug}", response_model=CategoryResponse)
async def get_category_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    category = await category_service.get_category_by_slug(db, slug)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


@router.get("/slug/{slug}/page", response_model=CategoryPageResponse)
async def get_category_page(
    slug: str,
    search: str | None = None,
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Landing page data: the category, one section per sub-category, and its products."""
    page = await get_category_page_data(db, slug, search=search, min_price=min_price, max_price=max_price)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return page


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    name: str = Form(...),
    parent_id: str | None = Form(None),
    image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    body = validate_form(CategoryCreate, {"name": name, "parent_id": parent_id or None})

    try:
        saved = await save_uploads([image] if image else [])
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        category = await category_service.create_category(
            db, body.name, parent_id=body.parent_id, image=saved[0] if saved else None,
        )
    except CatalogError as exc:
        discard_uploads(saved)
        raise http_error(exc) from exc

    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    name: str | None = Form(None),
    parent_id: str | None = Form(None),
    image: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    """Omitted fields are left alone; an empty parent_id moves the category to the top level."""
    body = validate_form(CategoryUpdate, {"name": name, "parent_id": parent_id or None})
    parent = category_service.UNSET if parent_id is None else body.parent_id

    try:
        saved = await save_uploads([image] if image else [])
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        category = await category_service.update_category(
            db, category_id, name=body.name, parent_id=parent, image=saved[0] if saved else None,
        )
    except CatalogError as exc:
        discard_uploads(saved)
        raise http_error(exc) from exc

    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: UUID, db: AsyncSession = Depends(get_db)):
    """Delete a category and its entire subtree."""
    try:
        await category_service.delete_category(db, category_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
