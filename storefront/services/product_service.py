from sqlalchemy.orm import Session
from sqlalchemy import insert, update, delete, select
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from storefront.errors import CleanupReport, TransactionFailed
from storefront.models.product import Product, new_product_id, utcnow
from storefront.models.product_image import ProductImage
from storefront.schemas.product import ProductCreate, ProductUpdate
from storefront.services.compensation import delete_files
from storefront.services.file_stores.base import FileStore, StoredFile
from storefront.kafka.producer import NoOpEventProducer

logger = logging.getLogger(__name__)

products = Product.__table__
product_images = ProductImage.__table__

# Columns an update may explicitly clear; anything else is skipped when sent as null
NULLABLE_FIELDS = {"characteristics", "brand"}


@dataclass
class UpdateResult:
    matched_count: int
    images_added: List[str] = field(default_factory=list)
    cleanup: CleanupReport = field(default_factory=CleanupReport)


@dataclass
class DeleteResult:
    affected_rows: int
    cleanup: CleanupReport = field(default_factory=CleanupReport)


class ProductService:
    """
    Product writes that span the database and the file store.

    Files are always persisted by the caller before these methods run, so the
    database transaction cannot cover them. Each method keeps the two in step:
    a failed create/update deletes the files it was handed, and a delete only
    removes files after its transaction has committed.
    """

    def __init__(self, db: Session, file_store: FileStore, event_producer=None):
        self.db = db
        self.file_store = file_store
        self.event_producer = event_producer or NoOpEventProducer()

    def _references(self, images: Optional[Sequence[StoredFile]]) -> List[str]:
        return [self.file_store.reference_for(image) for image in images or []]

    def _insert_images(self, product_id: str, references: List[str]) -> None:
        # Single multi-row INSERT
        self.db.execute(
            insert(product_images).values(
                [{"product_id": product_id, "image_url": url} for url in references]
            )
        )

    def _rollback(self, operation: str) -> None:
        try:
            self.db.rollback()
        except Exception as e:
            # The write error is what the caller needs to see
            logger.error(f"Rollback after failed {operation} also failed: {e}", exc_info=True)

    def _publish(self, event: str, **kwargs) -> None:
        try:
            getattr(self.event_producer, event)(**kwargs)
        except Exception as e:
            logger.error(f"Failed to publish {event}: {e}", exc_info=True)

    def create_product(
        self,
        product_data: ProductCreate,
        supplier_id: str,
        images: Optional[Sequence[StoredFile]] = None
    ) -> Product:
        """Insert a product and its image rows atomically"""
        references = self._references(images)
        product_id = new_product_id()

        try:
            self.db.execute(
                insert(products).values(
                    id=product_id,
                    supplier_id=supplier_id,
                    **product_data.model_dump()
                )
            )
            if references:
                self._insert_images(product_id, references)
            self.db.commit()
        except Exception as e:
            logger.error(f"Error creating product for supplier {supplier_id}: {e}", exc_info=True)
            self._rollback("create_product")
            cleanup = delete_files(self.file_store, references)
            raise TransactionFailed("create_product", cleanup) from e

        logger.info(f"Created product {product_id} for supplier {supplier_id} with {len(references)} image(s)")
        self._publish(
            "publish_product_created",
            product_id=product_id,
            supplier_id=supplier_id,
            name=product_data.name,
            image_count=len(references)
        )
        return self.db.get(Product, product_id)

    def update_product_by_id(
        self,
        product_id: str,
        supplier_id: str,
        product_data: ProductUpdate,
        new_images: Optional[Sequence[StoredFile]] = None
    ) -> UpdateResult:
        """
        Update an owned product and append any new images.

        Existing images are never removed here. Image rows are only inserted
        when the ownership-filtered update matched a row; otherwise the new
        files are deleted again and matched_count is 0.
        """
        references = self._references(new_images)
        values = {
            key: value
            for key, value in product_data.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_FIELDS
        }
        values["updated_at"] = utcnow()

        try:
            result = self.db.execute(
                update(products)
                .where(products.c.id == product_id, products.c.supplier_id == supplier_id)
                .values(**values)
            )
            matched_count = result.rowcount
            if matched_count > 0:
                if references:
                    self._insert_images(product_id, references)
                self.db.commit()
            else:
                self.db.rollback()
        except Exception as e:
            logger.error(f"Error updating product {product_id}: {e}", exc_info=True)
            self._rollback("update_product_by_id")
            cleanup = delete_files(self.file_store, references)
            raise TransactionFailed("update_product_by_id", cleanup) from e

        if matched_count == 0:
            logger.warning(f"Update matched no product {product_id} owned by supplier {supplier_id}")
            return UpdateResult(
                matched_count=0,
                cleanup=delete_files(self.file_store, references)
            )

        logger.info(f"Updated product {product_id}, appended {len(references)} image(s)")
        self._publish(
            "publish_product_updated",
            product_id=product_id,
            supplier_id=supplier_id,
            added_images=len(references)
        )
        return UpdateResult(matched_count=matched_count, images_added=references)

    def delete_product_by_id(self, product_id: str, supplier_id: str) -> DeleteResult:
        """
        Delete an owned product and its image rows, then its files.

        Files are only touched after the commit and only when a row was
        actually deleted.
        """
        owned_product = (
            select(products.c.id)
            .where(products.c.id == product_id, products.c.supplier_id == supplier_id)
            .scalar_subquery()
        )

        try:
            image_urls = self.db.execute(
                select(product_images.c.image_url)
                .where(product_images.c.product_id == owned_product)
                .order_by(product_images.c.id)
            ).scalars().all()
            self.db.execute(
                delete(product_images).where(product_images.c.product_id == owned_product)
            )
            result = self.db.execute(
                delete(products).where(products.c.id == product_id, products.c.supplier_id == supplier_id)
            )
            affected_rows = result.rowcount
            self.db.commit()
        except Exception as e:
            logger.error(f"Error deleting product {product_id}: {e}", exc_info=True)
            self._rollback("delete_product_by_id")
            raise TransactionFailed("delete_product_by_id", CleanupReport()) from e

        if affected_rows == 0:
            logger.warning(f"Delete matched no product {product_id} owned by supplier {supplier_id}")
            return DeleteResult(affected_rows=0)

        cleanup = delete_files(self.file_store, image_urls) if image_urls else CleanupReport()
        logger.info(f"Deleted product {product_id} and {len(image_urls)} image(s)")
        self._publish("publish_product_deleted", product_id=product_id, supplier_id=supplier_id)
        return DeleteResult(affected_rows=affected_rows, cleanup=cleanup)
