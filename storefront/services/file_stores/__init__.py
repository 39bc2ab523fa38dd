# Package exports - these allow cleaner imports like:
# from storefront.services.file_stores import FileStore, LocalFileStore
from storefront.services.file_stores.base import FileStore, FileStoreError, StoredFile
from storefront.services.file_stores.local_store import LocalFileStore
from storefront.services.file_stores.cloudinary_store import CloudinaryFileStore


def build_file_store(settings) -> FileStore:
    """Construct the file store selected by FILE_STORE"""
    if settings.file_store == "cloudinary":
        return CloudinaryFileStore(settings)
    return LocalFileStore(settings.upload_dir, settings.backend_url)
