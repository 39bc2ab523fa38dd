"""
Cloudinary file store implementation
"""
import cloudinary
import cloudinary.uploader
import logging
import re
from typing import Optional
from urllib.parse import urlparse

from storefront.config import Settings
from storefront.services.file_stores.base import FileStore, FileStoreError, StoredFile

logger = logging.getLogger(__name__)

_VERSION_SEGMENT = re.compile(r"^v\d+$")


def public_id_from_url(url: str) -> Optional[str]:
    """
    Recover the public_id from a Cloudinary delivery URL, e.g.
    https://res.cloudinary.com/<cloud>/image/upload/v1712/products/abc.jpg -> products/abc
    """
    path = urlparse(url).path
    marker = "/upload/"
    if marker not in path:
        return None
    segments = [s for s in path.split(marker, 1)[1].split("/") if s]
    if segments and _VERSION_SEGMENT.match(segments[0]):
        segments = segments[1:]
    if not segments:
        return None
    last = segments[-1]
    if "." in last:
        segments[-1] = last.rsplit(".", 1)[0]
    return "/".join(segments)


class CloudinaryFileStore(FileStore):
    """Cloudinary implementation of FileStore; references are secure delivery URLs"""

    def __init__(self, settings: Settings):
        self.cloud_name = settings.cloudinary_cloud_name
        self.api_key = settings.cloudinary_api_key
        self.api_secret = settings.cloudinary_api_secret
        self.folder = settings.cloudinary_folder

        if not all([self.cloud_name, self.api_key, self.api_secret]):
            logger.warning("Cloudinary not fully configured (missing cloud_name, api_key, or api_secret)")
        else:
            cloudinary.config(
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                secure=True
            )

    @property
    def configured(self) -> bool:
        return all([self.cloud_name, self.api_key, self.api_secret])

    def save(self, data: bytes, original_filename: str, content_type: Optional[str] = None) -> StoredFile:
        if not self.configured:
            raise FileStoreError("Cloudinary is not configured")

        try:
            result = cloudinary.uploader.upload(
                data,
                folder=self.folder,
                resource_type="image",
                tags=["product", "supplier-upload"],
            )
        except Exception as e:
            logger.error(f"Failed to upload image to Cloudinary: {e}", exc_info=True)
            raise FileStoreError(f"Cloudinary upload failed: {e}") from e

        url = result.get("secure_url")
        if not url:
            logger.error(f"Cloudinary upload succeeded but no secure_url returned: {result}")
            raise FileStoreError("Cloudinary upload returned no URL")

        logger.info(f"Successfully uploaded image to Cloudinary: {result.get('public_id')}")
        return StoredFile(path=url, original_filename=original_filename)

    def reference_for(self, stored: StoredFile) -> str:
        return stored.path

    def delete(self, reference: str) -> bool:
        public_id = public_id_from_url(reference)
        if not public_id:
            logger.warning(f"Not a Cloudinary URL, nothing to delete: {reference}")
            return False
        if not self.configured:
            raise FileStoreError("Cloudinary is not configured")

        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image")
        except Exception as e:
            raise FileStoreError(f"Cloudinary delete failed for {public_id}: {e}") from e

        outcome = result.get("result")
        if outcome == "ok":
            logger.info(f"Successfully deleted image from Cloudinary: {public_id}")
            return True
        if outcome == "not found":
            return False
        raise FileStoreError(f"Cloudinary delete failed for {public_id}: {result}")
