"""Translate catalog errors into HTTP responses."""

from fastapi import HTTPException, status

from storefront.core.exceptions import CatalogError

STATUS_BY_CODE = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate_code": status.HTTP_409_CONFLICT,
    "duplicate_category": status.HTTP_409_CONFLICT,
    "duplicate_tag": status.HTTP_409_CONFLICT,
    "category_cycle": status.HTTP_409_CONFLICT,
    "category_in_use": status.HTTP_409_CONFLICT,
    "upload_rejected": status.HTTP_400_BAD_REQUEST,
    "media_required": status.HTTP_400_BAD_REQUEST,
    "duplicate_slug": status.HTTP_409_CONFLICT,
}


def http_error(exc: CatalogError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST),
        detail=exc.message,
    )
