from sqlalchemy.orm import Session
from sqlalchemy import select, func, literal_column
from sqlalchemy.dialects.postgresql import aggregate_order_by
from typing import List, Optional
import logging

from storefront.models.product import Product
from storefront.models.product_image import ProductImage
from storefront.models.review import Review
from storefront.models.order_item import OrderItem
from storefront.schemas.product import (
    ProductView,
    PublicProductView,
    ProductDetail,
    BestSellerView,
)

logger = logging.getLogger(__name__)

IMAGE_SEPARATOR = ","

_PRODUCT_COLUMNS = (
    Product.id,
    Product.supplier_id,
    Product.name,
    Product.product_type,
    Product.brand,
    Product.price,
    Product.stock,
    Product.description,
    Product.characteristics,
    Product.created_at,
)


def split_images(aggregated: Optional[str]) -> List[str]:
    """Turn the comma-joined image column back into an ordered list"""
    if not aggregated:
        return []
    return [url for url in aggregated.split(IMAGE_SEPARATOR) if url]


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _images_column(dialect_name: str):
    """
    Correlated subquery joining a product's image URLs in upload order.

    A plain GROUP_CONCAT / string_agg makes no promise about row order, so the
    order is spelled out per dialect.
    """
    if dialect_name == "postgresql":
        aggregated = func.string_agg(
            ProductImage.image_url,
            aggregate_order_by(literal_column(f"'{IMAGE_SEPARATOR}'"), ProductImage.id)
        )
        stmt = select(aggregated)
    else:
        # Window form of group_concat follows the window's ORDER BY
        aggregated = func.group_concat(ProductImage.image_url, IMAGE_SEPARATOR).over(
            order_by=ProductImage.id,
            rows=(None, None)
        )
        stmt = select(aggregated).limit(1)

    return (
        stmt.where(ProductImage.product_id == Product.id)
        .correlate(Product)
        .scalar_subquery()
        .label("images")
    )


class ProductQueries:
    """Read-only product views; nothing here writes"""

    def __init__(self, db: Session):
        self.db = db

    def _rows(self, stmt):
        return self.db.execute(stmt).mappings().all()

    def _images(self):
        return _images_column(self.db.get_bind().dialect.name)

    @staticmethod
    def _shape(view_cls, row):
        data = dict(row)
        data["images"] = split_images(data.get("images"))
        return view_cls.model_validate(data)

    def find_products_by_supplier(self, supplier_id: str, search_term: str = "") -> List[ProductView]:
        """Supplier's own products, newest first, optionally filtered by name"""
        stmt = select(*_PRODUCT_COLUMNS, self._images()).where(Product.supplier_id == supplier_id)

        search_term = (search_term or "").strip()
        if search_term:
            pattern = f"%{escape_like(search_term.lower())}%"
            stmt = stmt.where(func.lower(Product.name).like(pattern, escape="\\"))

        stmt = stmt.order_by(Product.created_at.desc())
        rows = self._rows(stmt)
        logger.debug(f"Found {len(rows)} products for supplier {supplier_id}")
        return [self._shape(ProductView, row) for row in rows]

    def find_all_public_products(self) -> List[PublicProductView]:
        """Everything in stock, newest first"""
        stmt = (
            select(*_PRODUCT_COLUMNS, self._images())
            .where(Product.stock > 0)
            .order_by(Product.created_at.desc())
        )
        return [self._shape(PublicProductView, row) for row in self._rows(stmt)]

    def find_product_by_id(self, product_id: str) -> Optional[ProductDetail]:
        """Product with rating aggregates, or None when it does not exist"""
        ratings = (
            select(
                Review.product_id.label("product_id"),
                func.avg(Review.rating).label("avg_rating"),
                func.count(Review.id).label("review_count"),
            )
            .group_by(Review.product_id)
            .subquery()
        )
        stmt = (
            select(
                *_PRODUCT_COLUMNS,
                Product.net_weight,
                self._images(),
                ratings.c.avg_rating,
                func.coalesce(ratings.c.review_count, 0).label("review_count"),
            )
            .outerjoin(ratings, ratings.c.product_id == Product.id)
            .where(Product.id == product_id)
        )
        row = self.db.execute(stmt).mappings().first()
        if row is None:
            return None

        data = dict(row)
        if data["avg_rating"] is not None:
            data["avg_rating"] = float(data["avg_rating"])
        return self._shape(ProductDetail, data)

    def find_best_sellers(self, limit: int = 5) -> List[BestSellerView]:
        """
        In-stock products ranked by number of order lines.

        Products that never sold are excluded. Ties are broken newest first.
        """
        sales = (
            select(
                OrderItem.product_id.label("product_id"),
                func.count(OrderItem.id).label("sales_count"),
            )
            .group_by(OrderItem.product_id)
            .subquery()
        )
        stmt = (
            select(*_PRODUCT_COLUMNS, self._images(), sales.c.sales_count)
            .join(sales, sales.c.product_id == Product.id)
            .where(Product.stock > 0)
            .order_by(sales.c.sales_count.desc(), Product.created_at.desc())
            .limit(limit)
        )
        return [self._shape(BestSellerView, row) for row in self._rows(stmt)]
