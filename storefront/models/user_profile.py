from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from storefront.db.database import Base
from storefront.models.product import utcnow


class UserProfile(Base):
    """Profile picture of an account owned by the auth service, keyed by the token's subject"""
    __tablename__ = "user_profiles"

    user_id = Column(String(64), primary_key=True)
    profile_picture_url = Column(String(512))
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)
