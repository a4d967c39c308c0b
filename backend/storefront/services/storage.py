"""Local file storage for catalog images and homepage section media.

Files are written under settings.UPLOAD_DIR and referenced everywhere else by
their public path ("/uploads/<name>"); the catalog never reads them back.
"""

import logging
import random
import re
import time
from collections.abc import Collection
from pathlib import Path

from fastapi import UploadFile

from storefront.core.config import settings
from storefront.core.exceptions import UploadRejectedError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
MEDIA_CONTENT_TYPES = ALLOWED_CONTENT_TYPES | {"video/mp4", "video/webm"}
CHUNK_SIZE = 64 * 1024

MAX_UPLOAD_BYTES = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def has_content(file: UploadFile | None) -> bool:
    """Browsers send an empty part when a file input is left blank."""
    return bool(file is not None and file.filename and file.size != 0)


def build_filename(original: str | None) -> str:
    clean = _UNSAFE_CHARS.sub("", original or "") or "upload"
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique}-{clean}"


async def save_upload(
    file: UploadFile,
    allowed_types: Collection[str] = ALLOWED_CONTENT_TYPES,
    max_size_mb: int | None = None,
) -> str:
    """Persist an uploaded file and return its public path."""
    if file.content_type not in allowed_types:
        raise UploadRejectedError(
            f"File type not allowed. Use: {', '.join(sorted(allowed_types))}"
        )

    max_mb = max_size_mb or settings.MAX_UPLOAD_SIZE_MB
    max_bytes = MAX_UPLOAD_BYTES if max_size_mb is None else max_mb * 1024 * 1024

    # Check Content-Length first (if available) to reject early
    if file.size and file.size > max_bytes:
        raise UploadRejectedError(f"File too large. Max {max_mb}MB")

    chunks = []
    total_size = 0
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_bytes:
            raise UploadRejectedError(f"File too large. Max {max_mb}MB")
        chunks.append(chunk)

    root = upload_root()
    root.mkdir(parents=True, exist_ok=True)
    filename = build_filename(file.filename)
    (root / filename).write_bytes(b"".join(chunks))

    return f"{settings.UPLOAD_URL_PREFIX}/{filename}"


def delete_file(public_path: str | None) -> None:
    """Remove a stored file by its public path. Missing files are ignored."""
    if not public_path:
        return
    path = upload_root() / Path(public_path).name
    try:
        path.unlink()
        logger.info(f"Deleted upload {path}")
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception(f"Failed to delete upload {path}")
