from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging

from storefront.config import Settings
from storefront.db.database import get_db
from storefront.errors import UploadRejected
from storefront.services.file_stores.base import FileStore, FileStoreError
from storefront.services.product_queries import ProductQueries
from storefront.services.product_service import ProductService
from storefront.services.profile_picture_service import ProfilePictureService
from storefront.services.uploads import store_uploads

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_store(request: Request) -> FileStore:
    return request.app.state.file_store


def get_event_producer(request: Request):
    return request.app.state.event_producer


def get_product_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store),
    event_producer=Depends(get_event_producer)
) -> ProductService:
    """Dependency to get product service"""
    return ProductService(db, file_store, event_producer)


def get_product_queries(db: Session = Depends(get_db)) -> ProductQueries:
    return ProductQueries(db)


def get_profile_picture_service(
    db: Session = Depends(get_db),
    file_store: FileStore = Depends(get_file_store)
) -> ProfilePictureService:
    return ProfilePictureService(db, file_store)


async def store_or_reject(files, file_store: FileStore, settings: Settings):
    """Store uploaded images, turning upload errors into HTTP errors"""
    try:
        return await store_uploads(files or [], file_store, settings)
    except UploadRejected as e:
        logger.warning(f"Upload rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except FileStoreError as e:
        logger.error(f"Failed to store upload: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store image"
        )
