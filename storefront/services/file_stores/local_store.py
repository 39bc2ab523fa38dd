"""
Local disk file store, served by the app under /uploads
"""
import logging
import os
import uuid
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from storefront.services.file_stores.base import FileStore, FileStoreError, StoredFile

logger = logging.getLogger(__name__)


class LocalFileStore(FileStore):
    """Stores files in a directory and references them as {base_url}/uploads/{name}"""

    def __init__(self, upload_dir: str, base_url: str, field_name: str = "product_images"):
        self.upload_dir = Path(upload_dir)
        self.base_url = base_url.rstrip("/")
        self.field_name = field_name
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _unique_name(self, original_filename: str) -> str:
        ext = Path(original_filename).suffix.lower()
        return f"{self.field_name}-{uuid.uuid4().hex}{ext}"

    def save(self, data: bytes, original_filename: str, content_type: Optional[str] = None) -> StoredFile:
        path = self.upload_dir / self._unique_name(original_filename)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise FileStoreError(f"Failed to write {path}: {e}") from e
        logger.info(f"Stored upload {original_filename!r} as {path.name}")
        return StoredFile(path=str(path), original_filename=original_filename)

    def reference_for(self, stored: StoredFile) -> str:
        return f"{self.base_url}/uploads/{os.path.basename(stored.path)}"

    def path_for(self, reference: str) -> Path:
        # Only the basename is trusted, so a reference can never point outside upload_dir
        filename = os.path.basename(urlparse(reference).path)
        return self.upload_dir / filename

    def delete(self, reference: str) -> bool:
        path = self.path_for(reference)
        if not path.name or not path.exists():
            logger.debug(f"Nothing to delete for {reference}")
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FileStoreError(f"Failed to delete {path}: {e}") from e
        logger.info(f"Deleted stored file {path.name}")
        return True
