from fastapi import APIRouter, Depends, HTTPException, status, File, UploadFile
from typing import Optional
import logging

from storefront.api.deps import get_app_settings, get_file_store, get_profile_picture_service, store_or_reject
from storefront.auth.dependencies import require_supplier
from storefront.config import Settings
from storefront.errors import TransactionFailed
from storefront.schemas.user import ProfilePictureResponse
from storefront.services.file_stores.base import FileStore
from storefront.services.profile_picture_service import ProfilePictureService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)


def _check_owner(user_id: str, current_user: dict) -> None:
    if current_user["user_id"] != user_id and current_user["role"] != "admin":
        logger.warning(f"User {current_user['user_id']} tried to change the picture of {user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change your own profile picture"
        )


@router.get(
    "/{user_id}/picture",
    response_model=ProfilePictureResponse,
    summary="Get a profile picture",
    responses={404: {"description": "User has no profile picture"}}
)
def get_profile_picture(
    user_id: str,
    service: ProfilePictureService = Depends(get_profile_picture_service)
):
    picture_url = service.get_picture(user_id)
    if not picture_url:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User has no profile picture")
    return ProfilePictureResponse(message="Profile picture", profile_picture_url=picture_url)


@router.put(
    "/{user_id}/picture",
    response_model=ProfilePictureResponse,
    summary="Replace a profile picture",
    description="""
    Upload a new profile picture as multipart field `profile_picture`.

    The previous picture file is removed once the new one is saved.
    Callers may only change their own picture unless they are admins.
    """,
    responses={
        400: {"description": "Missing or invalid image"},
        403: {"description": "Not your profile"}
    }
)
async def update_profile_picture(
    user_id: str,
    profile_picture: Optional[UploadFile] = File(None),
    current_user: dict = Depends(require_supplier),
    settings: Settings = Depends(get_app_settings),
    file_store: FileStore = Depends(get_file_store),
    service: ProfilePictureService = Depends(get_profile_picture_service)
):
    _check_owner(user_id, current_user)
    if profile_picture is None or not profile_picture.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image uploaded")

    [stored] = await store_or_reject([profile_picture], file_store, settings)

    try:
        result = service.replace_picture(user_id, stored)
    except TransactionFailed as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Profile picture could not be saved ({e.operation})"
        )

    return ProfilePictureResponse(
        message="Profile picture updated",
        profile_picture_url=result.picture_url,
        cleanup_failures=len(result.cleanup.failures)
    )


@router.delete(
    "/{user_id}/picture",
    response_model=ProfilePictureResponse,
    summary="Remove a profile picture",
    responses={
        403: {"description": "Not your profile"},
        404: {"description": "User has no profile picture"}
    }
)
def delete_profile_picture(
    user_id: str,
    current_user: dict = Depends(require_supplier),
    service: ProfilePictureService = Depends(get_profile_picture_service)
):
    _check_owner(user_id, current_user)

    try:
        result = service.remove_picture(user_id)
    except TransactionFailed as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Profile picture could not be removed ({e.operation})"
        )

    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User has no profile picture")
    return ProfilePictureResponse(
        message="Profile picture removed",
        cleanup_failures=len(result.cleanup.failures)
    )
