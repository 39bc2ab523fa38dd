from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from typing import Optional
import logging

from storefront.api import catalog, health, products, users
from storefront.config import Settings, get_settings
from storefront.db.database import Database
from storefront.kafka.producer import build_event_producer
from storefront.services.file_stores import FileStore, LocalFileStore, build_file_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DESCRIPTION = """
Supplier product catalog for the storefront.

**Features:**
- Product create/update/delete for suppliers, with image uploads
- Public catalog browsing, product details with ratings, best sellers
- Product change events on Kafka

**Authentication:**
Supplier endpoints require a bearer JWT carrying `sub` and `role` claims:
```
Authorization: Bearer <your-jwt-token>
```
"""


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    file_store: Optional[FileStore] = None,
    event_producer=None
) -> FastAPI:
    """
    Build the application.

    Resources are created here and attached to ``app.state``; the lifespan
    connects and disposes them. Tests pass their own instances.
    """
    settings = settings or get_settings()
    database = database or Database(settings)
    file_store = file_store or build_file_store(settings)
    event_producer = event_producer or build_event_producer(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting storefront catalog service...")
        if settings.run_migrations:
            await database.run_migrations()
        else:
            database.connect()
        logger.info("Storefront catalog service started successfully")
        yield
        # Shutdown
        logger.info("Shutting down storefront catalog service...")
        try:
            event_producer.flush()
        except Exception as e:
            logger.warning(f"Failed to flush event producer: {e}")
        database.dispose()

    app = FastAPI(
        title="Storefront Catalog Service",
        description=DESCRIPTION,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )
    app.state.settings = settings
    app.state.database = database
    app.state.file_store = file_store
    app.state.event_producer = event_producer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch all unhandled exceptions and log them properly"""
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            exc_info=True,
            extra={
                "path": request.url.path,
                "method": request.method,
            }
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors"""
        logger.warning(
            f"Validation error: {exc.errors()}",
            extra={
                "path": request.url.path,
                "method": request.method,
            }
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_encoder(exc.errors())}
        )

    app.include_router(health.router)
    app.include_router(products.router, prefix="/api")
    app.include_router(catalog.router, prefix="/api")
    app.include_router(users.router, prefix="/api")

    if isinstance(file_store, LocalFileStore):
        app.mount("/uploads", StaticFiles(directory=str(file_store.upload_dir)), name="uploads")

    @app.get("/")
    async def root():
        return {"service": settings.app_name, "version": app.version}

    return app
