"""Shared fixtures: in-memory database, file stores and an app wired to both."""
import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.db.database import Database
from storefront.kafka.producer import NoOpEventProducer
from storefront.main import create_app
from storefront.services.file_stores import LocalFileStore
from storefront.services.product_queries import ProductQueries
from storefront.services.product_service import ProductService
from tests.utils import BASE_URL, JWT_SECRET, RecordingEventProducer, RecordingFileStore


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite://",
        upload_dir=str(tmp_path / "uploads"),
        backend_url=BASE_URL,
        jwt_secret=JWT_SECRET,
        kafka_enabled=False,
        run_migrations=False,
    )


@pytest.fixture
def database(settings):
    db = Database(settings)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def file_store() -> RecordingFileStore:
    return RecordingFileStore()


@pytest.fixture
def events() -> RecordingEventProducer:
    return RecordingEventProducer()


@pytest.fixture
def product_service(db_session, file_store, events) -> ProductService:
    return ProductService(db_session, file_store, events)


@pytest.fixture
def queries(db_session) -> ProductQueries:
    return ProductQueries(db_session)


@pytest.fixture
def local_store(settings) -> LocalFileStore:
    return LocalFileStore(settings.upload_dir, settings.backend_url)


@pytest.fixture
def client(settings, database, local_store):
    app = create_app(
        settings=settings,
        database=database,
        file_store=local_store,
        event_producer=NoOpEventProducer(),
    )
    with TestClient(app) as test_client:
        yield test_client
