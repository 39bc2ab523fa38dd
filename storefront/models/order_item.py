from sqlalchemy import Column, Integer, String, Numeric, Index
from storefront.db.database import Base


class OrderItem(Base):
    """Order line; written by the orders feature, only counted here for best sellers"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), nullable=False)
    # No FK: order history outlives products removed from the catalog
    product_id = Column(String(36), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        Index("idx_order_items_product", "product_id"),
    )
