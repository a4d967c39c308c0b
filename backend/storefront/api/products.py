"""Product endpoints: storefront reads, admin CRUD, reviews and tagging."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.errors import http_error
from storefront.api.forms import discard_uploads, save_uploads, validate_form
from storefront.core.exceptions import CatalogError
from storefront.db.base import get_db
from storefront.schemas.product import (
    ProductCreate,
    ProductResponse,
    ProductTagsUpdate,
    ProductUpdate,
    ReviewCreate,
    ReviewResponse,
)
from storefront.services import products as product_service
from storefront.services.tags import set_product_tags

router = APIRouter(prefix="/products", tags=["products"])


def product_create_form(
    name: str = Form(...),
    price: str = Form(...),
    category_id: str = Form(...),
    sku: str | None = Form(None),
    barcode: str | None = Form(None),
    description: str | None = Form(None),
    discount_price: str | None = Form(None),
    sale_start_date: str | None = Form(None),
    sale_end_date: str | None = Form(None),
    stock: str | None = Form(None),
    variants: str | None = Form(None),
    size_guide_id: str | None = Form(None),
    tag_ids: list[str] | None = Form(None),
) -> ProductCreate:
    """Coerce the raw admin form strings into a ProductCreate."""
    return validate_form(ProductCreate, {
        "name": name,
        "price": price,
        "category_id": category_id,
        "sku": sku,
        "barcode": barcode,
        "description": description,
        "discount_price": discount_price,
        "sale_start_date": sale_start_date,
        "sale_end_date": sale_end_date,
        "stock": stock,
        "variants": variants,
        "size_guide_id": size_guide_id,
        "tag_ids": [t for t in tag_ids or [] if t],
    })


def product_update_form(
    name: str | None = Form(None),
    price: str | None = Form(None),
    category_id: str | None = Form(None),
    sku: str | None = Form(None),
    barcode: str | None = Form(None),
    description: str | None = Form(None),
    discount_price: str | None = Form(None),
    sale_start_date: str | None = Form(None),
    sale_end_date: str | None = Form(None),
    stock: str | None = Form(None),
    variants: str | None = Form(None),
    size_guide_id: str | None = Form(None),
) -> ProductUpdate:
    """Only fields present in the form are updated; blank optional fields are cleared."""
    return validate_form(ProductUpdate, {
        "name": name,
        "price": price,
        "category_id": category_id,
        "sku": sku,
        "barcode": barcode,
        "description": description,
        "discount_price": discount_price,
        "sale_start_date": sale_start_date,
        "sale_end_date": sale_end_date,
        "stock": stock,
        "variants": variants,
        "size_guide_id": size_guide_id,
    })


# ── Storefront ─────────────────────────────────────

@router.get("", response_model=list[ProductResponse])
async def list_products(db: AsyncSession = Depends(get_db)):
    return await product_service.list_products(db)


@router.get("/admin", response_model=list[ProductResponse])
async def list_admin_products(db: AsyncSession = Depends(get_db)):
    """Stored product state for the back-office, newest first."""
    return await product_service.list_admin_products(db)


@router.get("/search", response_model=list[ProductResponse])
async def search_products(q: str = Query(""), db: AsyncSession = Depends(get_db)):
    return await product_service.search_products(db, q)


@router.get("/slug/{slug}", response_model=ProductResponse)
async def get_product_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    """Product detail page; each call counts one view."""
    product = await product_service.get_product_by_slug(db, slug)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: UUID, db: AsyncSession = Depends(get_db)):
    product = await product_service.get_product_by_id(db, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("/{product_id}/related", response_model=list[ProductResponse])
async def get_related_products(product_id: UUID, db: AsyncSession = Depends(get_db)):
    product = await product_service.get_product_by_id(db, product_id)
    if not product:
        return []
    return await product_service.get_related_products(db, product.category_id, product.id)


# ── Admin ──────────────────────────────────────────

@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate = Depends(product_create_form),
    images: list[UploadFile] | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        saved = await save_uploads(images)
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        product = await product_service.create_product(db, body, images=saved)
    except CatalogError as exc:
        discard_uploads(saved)
        raise http_error(exc) from exc

    return ProductResponse.model_validate(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    body: ProductUpdate = Depends(product_update_form),
    kept_images: list[str] | None = Form(None),
    new_images: list[UploadFile] | None = File(None),
    db: AsyncSession = Depends(get_db),
):
    try:
        saved = await save_uploads(new_images)
    except CatalogError as exc:
        raise http_error(exc) from exc

    try:
        product = await product_service.update_product(
            db, product_id, body, new_images=saved, kept_images=kept_images,
        )
    except CatalogError as exc:
        discard_uploads(saved)
        raise http_error(exc) from exc

    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: UUID, db: AsyncSession = Depends(get_db)):
    try:
        await product_service.delete_product(db, product_id)
    except CatalogError as exc:
        raise http_error(exc) from exc


@router.post("/{product_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def add_review(product_id: UUID, body: ReviewCreate, db: AsyncSession = Depends(get_db)):
    try:
        review = await product_service.add_review(db, product_id, body)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return ReviewResponse.model_validate(review)


@router.put("/{product_id}/tags", response_model=ProductResponse)
async def update_product_tags(product_id: UUID, body: ProductTagsUpdate, db: AsyncSession = Depends(get_db)):
    try:
        product = await set_product_tags(db, product_id, body.tag_ids)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return ProductResponse.model_validate(product)
