from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from storefront.db.database import Base


class ProductImage(Base):
    """Reference to an image held by the file store.

    Rows are removed explicitly by the delete path; the cascade covers
    deletes issued outside the service.
    """
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    image_url = Column(String(512), nullable=False)

    __table_args__ = (
        Index("idx_product_images_product", "product_id"),
    )

    product = relationship("Product", back_populates="images")
