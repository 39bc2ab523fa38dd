import logging
from pathlib import Path
from typing import List, Optional, Sequence

from fastapi import UploadFile

from storefront.config import Settings
from storefront.errors import UploadRejected
from storefront.services.compensation import delete_files
from storefront.services.file_stores.base import FileStore, StoredFile

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}


def validate_upload(filename: Optional[str], content_type: Optional[str], size: int, settings: Settings) -> None:
    """Reject anything that is not a JPEG, PNG, GIF or WEBP image within the size cap"""
    ext = Path(filename or "").suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS or (content_type or "").lower() not in ALLOWED_IMAGE_TYPES:
        raise UploadRejected(
            f"{filename!r} must be a valid image ({', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))})"
        )
    if size > settings.max_upload_bytes:
        raise UploadRejected(
            f"{filename!r} is larger than {settings.max_upload_bytes // (1024 * 1024)} MB"
        )


async def store_uploads(
    files: Sequence[UploadFile],
    file_store: FileStore,
    settings: Settings
) -> List[StoredFile]:
    """
    Validate and persist a batch of uploaded images.

    Files are written before any database row references them. If any file in
    the batch is rejected, the ones already written are removed again.
    """
    files = [f for f in files if f is not None and f.filename]
    if len(files) > settings.max_upload_files:
        raise UploadRejected(f"At most {settings.max_upload_files} images per request")

    stored: List[StoredFile] = []
    try:
        for upload in files:
            # One byte past the cap is enough to know the file is too big
            data = await upload.read(settings.max_upload_bytes + 1)
            validate_upload(upload.filename, upload.content_type, len(data), settings)
            stored.append(file_store.save(data, upload.filename, upload.content_type))
    except Exception:
        if stored:
            logger.warning(f"Upload batch rejected, removing {len(stored)} stored file(s)")
            delete_files(file_store, [file_store.reference_for(s) for s in stored])
        raise
    return stored
