"""File store backends and best-effort cleanup."""
import os

import pytest

from storefront.services.compensation import delete_files
from storefront.services.file_stores import (
    CloudinaryFileStore,
    FileStoreError,
    LocalFileStore,
    build_file_store,
)
from storefront.services.file_stores.cloudinary_store import public_id_from_url
from tests.utils import BASE_URL, RecordingFileStore


class TestLocalFileStore:

    def test_save_writes_under_upload_dir_with_unique_name(self, local_store):
        first = local_store.save(b"one", "Photo.JPG", "image/jpeg")
        second = local_store.save(b"two", "Photo.JPG", "image/jpeg")

        assert first.path != second.path
        assert first.path.endswith(".jpg")
        assert os.path.basename(first.path).startswith("product_images-")
        with open(first.path, "rb") as fh:
            assert fh.read() == b"one"
        assert first.original_filename == "Photo.JPG"

    def test_reference_joins_base_url_and_basename(self, local_store):
        saved = local_store.save(b"data", "a.png")

        assert local_store.reference_for(saved) == f"{BASE_URL}/uploads/{os.path.basename(saved.path)}"

    def test_delete_removes_file(self, local_store):
        saved = local_store.save(b"data", "a.png")

        assert local_store.delete(local_store.reference_for(saved)) is True
        assert not os.path.exists(saved.path)

    def test_delete_missing_file_is_not_an_error(self, local_store):
        assert local_store.delete(f"{BASE_URL}/uploads/never-existed.jpg") is False

    def test_delete_ignores_directories_in_reference(self, local_store, tmp_path):
        outside = tmp_path / "keep.txt"
        outside.write_text("keep")

        assert local_store.delete(f"{BASE_URL}/uploads/../keep.txt") is False
        assert outside.exists()


class TestCloudinaryFileStore:

    @pytest.fixture
    def store(self, settings):
        settings.cloudinary_cloud_name = "demo"
        settings.cloudinary_api_key = "key"
        settings.cloudinary_api_secret = "secret"
        return CloudinaryFileStore(settings)

    def test_public_id_from_url(self):
        url = "https://res.cloudinary.com/demo/image/upload/v1712345678/products/abc123.jpg"
        assert public_id_from_url(url) == "products/abc123"
        assert public_id_from_url("https://res.cloudinary.com/demo/image/upload/sample.png") == "sample"
        assert public_id_from_url("http://test.local/uploads/a.jpg") is None

    def test_save_returns_secure_url(self, store, monkeypatch):
        calls = []

        def fake_upload(data, **options):
            calls.append(options)
            return {"public_id": "products/abc", "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/products/abc.jpg"}

        monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)

        saved = store.save(b"bytes", "a.jpg", "image/jpeg")

        assert store.reference_for(saved) == "https://res.cloudinary.com/demo/image/upload/v1/products/abc.jpg"
        assert calls[0]["folder"] == "products"

    def test_save_failure_raises(self, store, monkeypatch):
        def fake_upload(data, **options):
            raise RuntimeError("quota exceeded")

        monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)

        with pytest.raises(FileStoreError):
            store.save(b"bytes", "a.jpg")

    def test_delete_outcomes(self, store, monkeypatch):
        outcomes = {"products/ok": "ok", "products/gone": "not found", "products/bad": "error"}
        monkeypatch.setattr(
            "cloudinary.uploader.destroy",
            lambda public_id, **kwargs: {"result": outcomes[public_id]}
        )
        base = "https://res.cloudinary.com/demo/image/upload/v1/"

        assert store.delete(base + "products/ok.jpg") is True
        assert store.delete(base + "products/gone.jpg") is False
        with pytest.raises(FileStoreError):
            store.delete(base + "products/bad.jpg")

    def test_unconfigured_store_refuses_uploads(self, settings):
        with pytest.raises(FileStoreError):
            CloudinaryFileStore(settings).save(b"bytes", "a.jpg")


def test_build_file_store_follows_settings(settings):
    assert isinstance(build_file_store(settings), LocalFileStore)
    settings.file_store = "cloudinary"
    assert isinstance(build_file_store(settings), CloudinaryFileStore)


class TestDeleteFiles:

    def test_one_attempt_per_reference(self):
        store = RecordingFileStore()
        refs = [f"{BASE_URL}/uploads/{n}.jpg" for n in range(3)]

        report = delete_files(store, refs)

        assert store.deleted == refs
        assert report.attempted == refs
        assert report.ok

    def test_failures_are_collected_not_raised(self):
        store = RecordingFileStore(fail_deletes=True)
        refs = [f"{BASE_URL}/uploads/a.jpg", f"{BASE_URL}/uploads/b.jpg"]

        report = delete_files(store, refs)

        assert store.deleted == refs
        assert [f.reference for f in report.failures] == refs
        assert not report.ok

    def test_a_failure_does_not_stop_the_rest(self):
        class FlakyStore(RecordingFileStore):
            def delete(self, reference):
                self.deleted.append(reference)
                if reference.endswith("bad.jpg"):
                    raise OSError("permission denied")
                return True

        store = FlakyStore()
        refs = ["x/good1.jpg", "x/bad.jpg", "x/good2.jpg"]

        report = delete_files(store, refs)

        assert store.deleted == refs
        assert [f.reference for f in report.failures] == ["x/bad.jpg"]
        assert "permission denied" in report.failures[0].error

    def test_missing_local_files_are_fine(self, local_store):
        report = delete_files(local_store, [f"{BASE_URL}/uploads/ghost.jpg"])

        assert report.ok

    def test_no_references(self):
        assert delete_files(RecordingFileStore(), []).attempted == []
