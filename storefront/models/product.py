from sqlalchemy import Column, String, Text, Integer, Numeric, DateTime, CheckConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
from storefront.db.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_product_id() -> str:
    return str(uuid.uuid4())


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_product_id)
    supplier_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    product_type = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    net_weight = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    characteristics = Column(Text)
    stock = Column(Integer, nullable=False, default=0)
    brand = Column(String(100))
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="non_negative_stock"),
        CheckConstraint("price >= 0", name="non_negative_price"),
        Index("idx_products_supplier", "supplier_id"),
        Index("idx_products_created", "created_at"),
    )

    images = relationship(
        "ProductImage",
        back_populates="product",
        order_by="ProductImage.id",
        passive_deletes=True,
    )
