from pydantic import BaseModel, Field
from typing import Optional


class ProfilePictureResponse(BaseModel):
    message: str
    profile_picture_url: Optional[str] = Field(None, description="Current picture, null once removed")
    cleanup_failures: int = 0
