from sqlalchemy.orm import Session
from dataclasses import dataclass, field
from typing import Optional
import logging

from storefront.errors import CleanupReport, TransactionFailed
from storefront.models.user_profile import UserProfile
from storefront.services.compensation import delete_files
from storefront.services.file_stores.base import FileStore, StoredFile

logger = logging.getLogger(__name__)


@dataclass
class PictureResult:
    picture_url: Optional[str]
    previous_url: Optional[str] = None
    cleanup: CleanupReport = field(default_factory=CleanupReport)


class ProfilePictureService:
    """
    Swaps the single picture reference on a user profile.

    The new file is stored by the caller before the swap. A failed commit
    deletes it again; the replaced file is only deleted once the new
    reference has committed.
    """

    def __init__(self, db: Session, file_store: FileStore):
        self.db = db
        self.file_store = file_store

    def _rollback(self, operation: str) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            logger.error(f"Rollback after failed {operation} also failed: {e}", exc_info=True)

    def get_picture(self, user_id: str) -> Optional[str]:
        profile = self.db.get(UserProfile, user_id)
        return profile.profile_picture_url if profile else None

    def replace_picture(self, user_id: str, picture: StoredFile) -> PictureResult:
        """Point the profile at a newly stored picture, creating the profile on first use"""
        new_url = self.file_store.reference_for(picture)

        try:
            profile = self.db.get(UserProfile, user_id, with_for_update=True)
            previous_url = profile.profile_picture_url if profile else None
            if profile is None:
                self.db.add(UserProfile(user_id=user_id, profile_picture_url=new_url))
            else:
                profile.profile_picture_url = new_url
            self.db.commit()
        except Exception as e:
            logger.error(f"Error replacing profile picture of user {user_id}: {e}", exc_info=True)
            self._rollback("replace_picture")
            cleanup = delete_files(self.file_store, [new_url])
            raise TransactionFailed("replace_picture", cleanup) from e

        cleanup = delete_files(self.file_store, [previous_url]) if previous_url else CleanupReport()
        logger.info(f"Profile picture of user {user_id} set to {new_url}")
        return PictureResult(picture_url=new_url, previous_url=previous_url, cleanup=cleanup)

    def remove_picture(self, user_id: str) -> Optional[PictureResult]:
        """Clear the picture reference; None when there was nothing to remove"""
        try:
            profile = self.db.get(UserProfile, user_id, with_for_update=True)
            if profile is None or not profile.profile_picture_url:
                self.db.rollback()
                return None
            previous_url = profile.profile_picture_url
            profile.profile_picture_url = None
            self.db.commit()
        except Exception as e:
            logger.error(f"Error removing profile picture of user {user_id}: {e}", exc_info=True)
            self._rollback("remove_picture")
            raise TransactionFailed("remove_picture", CleanupReport()) from e

        logger.info(f"Removed profile picture of user {user_id}")
        return PictureResult(
            picture_url=None,
            previous_url=previous_url,
            cleanup=delete_files(self.file_store, [previous_url])
        )
