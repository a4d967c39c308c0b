"""Helpers for multipart admin forms."""

from collections.abc import Sequence
from typing import TypeVar

from fastapi import UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from storefront.services.storage import delete_file, has_content, save_upload

M = TypeVar("M", bound=BaseModel)


def validate_form(model: type[M], fields: dict) -> M:
    """Build a schema from form strings; missing (None) fields stay unset."""
    try:
        return model.model_validate({k: v for k, v in fields.items() if v is not None})
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc


async def save_uploads(files: Sequence[UploadFile] | None) -> list[str]:
    """Store every non-empty upload; on failure remove the ones already written."""
    saved: list[str] = []
    try:
        for file in files or []:
            if has_content(file):
                saved.append(await save_upload(file))
    except Exception:
        discard_uploads(saved)
        raise
    return saved


def discard_uploads(paths: Sequence[str]) -> None:
    for path in paths:
        delete_file(path)
