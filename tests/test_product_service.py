"""Transactional product writes and their file compensation."""
import os

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from storefront.errors import TransactionFailed
from storefront.models import Product, ProductImage, Review
from storefront.schemas.product import ProductUpdate
from storefront.services.product_service import ProductService
from tests.utils import BASE_URL, RecordingFileStore, product_fields, stored


def count(session, model, **filters) -> int:
    stmt = select(func.count()).select_from(model)
    for column, value in filters.items():
        stmt = stmt.where(getattr(model, column) == value)
    return session.execute(stmt).scalar_one()


def image_urls(session, product_id):
    return session.execute(
        select(ProductImage.image_url)
        .where(ProductImage.product_id == product_id)
        .order_by(ProductImage.id)
    ).scalars().all()


def fail_commit(monkeypatch, session):
    def broken_commit():
        raise OperationalError("COMMIT", {}, Exception("connection lost"))
    monkeypatch.setattr(session, "commit", broken_commit)


class TestCreateProduct:

    def test_creates_product_and_images_together(self, product_service, db_session):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg", "b.jpg"))

        assert count(db_session, Product) == 1
        assert image_urls(db_session, product.id) == [
            f"{BASE_URL}/uploads/a.jpg",
            f"{BASE_URL}/uploads/b.jpg",
        ]
        assert product.supplier_id == "supplier-1"
        assert product.name == "Colombian Supremo"
        assert len(product.id) == 36

    def test_references_come_from_base_url_and_basename(self, db_session, local_store):
        service = ProductService(db_session, local_store)
        files = [
            local_store.save(b"\xff\xd8first", "front.jpg", "image/jpeg"),
            local_store.save(b"\xff\xd8second", "back.png", "image/png"),
        ]

        product = service.create_product(product_fields(), "supplier-1", files)

        assert image_urls(db_session, product.id) == [
            f"{BASE_URL}/uploads/{os.path.basename(f.path)}" for f in files
        ]

    def test_without_images_inserts_no_image_rows(self, product_service, db_session, file_store):
        product = product_service.create_product(product_fields(brand=None, characteristics=None), "supplier-1")

        assert count(db_session, ProductImage) == 0
        assert product.brand is None
        assert file_store.deleted == []

    def test_generates_distinct_ids(self, product_service):
        first = product_service.create_product(product_fields(), "supplier-1")
        second = product_service.create_product(product_fields(), "supplier-1")

        assert first.id != second.id

    def test_failure_before_commit_leaves_nothing_and_deletes_every_file(
        self, monkeypatch, product_service, db_session, file_store
    ):
        fail_commit(monkeypatch, db_session)

        with pytest.raises(TransactionFailed) as exc_info:
            product_service.create_product(product_fields(), "supplier-1", stored("a.jpg", "b.jpg"))

        monkeypatch.undo()
        assert count(db_session, Product) == 0
        assert count(db_session, ProductImage) == 0
        assert file_store.deleted == [
            f"{BASE_URL}/uploads/a.jpg",
            f"{BASE_URL}/uploads/b.jpg",
        ]
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert exc_info.value.operation == "create_product"
        assert exc_info.value.cleanup.ok

    def test_cleanup_failures_do_not_mask_the_write_error(self, monkeypatch, db_session):
        failing_store = RecordingFileStore(fail_deletes=True)
        service = ProductService(db_session, failing_store)
        fail_commit(monkeypatch, db_session)

        with pytest.raises(TransactionFailed) as exc_info:
            service.create_product(product_fields(), "supplier-1", stored("a.jpg", "b.jpg", "c.jpg"))

        assert len(failing_store.deleted) == 3
        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert [f.reference for f in exc_info.value.cleanup.failures] == failing_store.deleted

    def test_constraint_violation_rolls_back(self, product_service, db_session, file_store):
        # Bypass schema validation to hit the database check constraint
        fields = product_fields()
        fields.stock = -1

        with pytest.raises(TransactionFailed):
            product_service.create_product(fields, "supplier-1", stored("a.jpg"))

        assert count(db_session, Product) == 0
        assert file_store.deleted == [f"{BASE_URL}/uploads/a.jpg"]

    def test_publishes_created_event_after_commit(self, product_service, events):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg"))

        assert events.events == [(
            "PRODUCT_CREATED",
            {"product_id": product.id, "supplier_id": "supplier-1", "name": "Colombian Supremo", "image_count": 1},
        )]

    def test_event_failure_does_not_undo_the_write(self, db_session, file_store):
        class BrokenProducer:
            def publish_product_created(self, **kwargs):
                raise RuntimeError("broker down")

        service = ProductService(db_session, file_store, BrokenProducer())
        product = service.create_product(product_fields(), "supplier-1", stored("a.jpg"))

        assert count(db_session, Product, id=product.id) == 1
        assert file_store.deleted == []


class TestUpdateProduct:

    def test_updates_owned_product_and_appends_images(self, product_service, db_session):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg"))

        result = product_service.update_product_by_id(
            product.id, "supplier-1", ProductUpdate(name="Huila Reserve", stock=5), stored("b.jpg")
        )

        assert result.matched_count == 1
        assert result.images_added == [f"{BASE_URL}/uploads/b.jpg"]
        db_session.expire_all()
        updated = db_session.get(Product, product.id)
        assert updated.name == "Huila Reserve"
        assert updated.stock == 5
        assert updated.net_weight == "500g"
        assert image_urls(db_session, product.id) == [
            f"{BASE_URL}/uploads/a.jpg",
            f"{BASE_URL}/uploads/b.jpg",
        ]

    def test_nullable_fields_can_be_cleared(self, product_service, db_session):
        product = product_service.create_product(product_fields(), "supplier-1")

        product_service.update_product_by_id(product.id, "supplier-1", ProductUpdate(brand=None))

        db_session.expire_all()
        assert db_session.get(Product, product.id).brand is None

    def test_wrong_supplier_matches_nothing_and_inserts_no_images(
        self, product_service, db_session, file_store, events
    ):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg"))
        events.events.clear()

        result = product_service.update_product_by_id(
            product.id, "supplier-2", ProductUpdate(name="Hijacked"), stored("evil.jpg")
        )

        assert result.matched_count == 0
        db_session.expire_all()
        assert db_session.get(Product, product.id).name == "Colombian Supremo"
        assert image_urls(db_session, product.id) == [f"{BASE_URL}/uploads/a.jpg"]
        # The upload for the rejected update is orphaned and removed
        assert file_store.deleted == [f"{BASE_URL}/uploads/evil.jpg"]
        assert events.events == []

    def test_unknown_product_matches_nothing(self, product_service, db_session):
        result = product_service.update_product_by_id(
            "00000000-0000-0000-0000-000000000000", "supplier-1", ProductUpdate(name="x"), stored("x.jpg")
        )

        assert result.matched_count == 0
        assert count(db_session, ProductImage) == 0

    def test_failure_rolls_back_and_compensates_new_files(
        self, monkeypatch, product_service, db_session, file_store
    ):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg"))
        fail_commit(monkeypatch, db_session)

        with pytest.raises(TransactionFailed):
            product_service.update_product_by_id(
                product.id, "supplier-1", ProductUpdate(name="Renamed"), stored("b.jpg", "c.jpg")
            )

        monkeypatch.undo()
        db_session.expire_all()
        assert db_session.get(Product, product.id).name == "Colombian Supremo"
        assert image_urls(db_session, product.id) == [f"{BASE_URL}/uploads/a.jpg"]
        assert file_store.deleted == [f"{BASE_URL}/uploads/b.jpg", f"{BASE_URL}/uploads/c.jpg"]


class TestDeleteProduct:

    def test_owner_delete_removes_rows_then_files(self, product_service, db_session, file_store, events):
        files = [file_store.save(b"x", name) for name in ("a.jpg", "b.jpg")]
        product_id = product_service.create_product(product_fields(), "supplier-1", files).id

        result = product_service.delete_product_by_id(product_id, "supplier-1")

        assert result.affected_rows == 1
        assert count(db_session, Product) == 0
        assert count(db_session, ProductImage) == 0
        assert file_store.deleted == [file_store.reference_for(f) for f in files]
        assert file_store.files == set()
        assert result.cleanup.ok
        assert events.events[-1] == ("PRODUCT_DELETED", {"product_id": product_id, "supplier_id": "supplier-1"})

    def test_reviews_go_with_the_product(self, product_service, db_session):
        product_id = product_service.create_product(product_fields(), "supplier-1").id
        db_session.add_all([
            Review(product_id=product_id, user_id="u1", rating=5),
            Review(product_id=product_id, user_id="u2", rating=2),
        ])
        db_session.commit()

        product_service.delete_product_by_id(product_id, "supplier-1")

        assert count(db_session, Review) == 0

    def test_wrong_supplier_deletes_nothing_and_touches_no_files(self, product_service, db_session, file_store):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg", "b.jpg"))

        result = product_service.delete_product_by_id(product.id, "intruder")

        assert result.affected_rows == 0
        assert file_store.deleted == []
        assert count(db_session, Product) == 1
        assert count(db_session, ProductImage) == 2

    def test_unknown_product(self, product_service, file_store):
        result = product_service.delete_product_by_id("missing", "supplier-1")

        assert result.affected_rows == 0
        assert file_store.deleted == []

    def test_failed_commit_keeps_rows_and_files(self, monkeypatch, product_service, db_session, file_store):
        product = product_service.create_product(product_fields(), "supplier-1", stored("a.jpg"))
        fail_commit(monkeypatch, db_session)

        with pytest.raises(TransactionFailed) as exc_info:
            product_service.delete_product_by_id(product.id, "supplier-1")

        monkeypatch.undo()
        assert exc_info.value.cleanup.attempted == []
        assert file_store.deleted == []
        assert count(db_session, Product) == 1
        assert count(db_session, ProductImage) == 1

    def test_file_cleanup_failure_is_reported_not_raised(self, db_session):
        failing_store = RecordingFileStore(fail_deletes=True)
        service = ProductService(db_session, failing_store)
        product = service.create_product(product_fields(), "supplier-1", stored("a.jpg"))

        result = service.delete_product_by_id(product.id, "supplier-1")

        assert result.affected_rows == 1
        assert len(result.cleanup.failures) == 1
        assert count(db_session, Product) == 0
