import json
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    # Application
    app_name: str = "storefront-catalog"
    debug: bool = False

    # Database
    database_url: str = Field(
        default="sqlite:///./storefront.db",
        validation_alias="DATABASE_URL"
    )
    db_pool_size: int = Field(default=10, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=20, validation_alias="DB_MAX_OVERFLOW")
    run_migrations: bool = Field(default=False, validation_alias="RUN_MIGRATIONS")

    # Public base URL used to build image references for the local store
    backend_url: str = Field(default="http://localhost:5000", validation_alias="BACKEND_URL")

    # Uploads
    upload_dir: str = Field(default="uploads", validation_alias="UPLOAD_DIR")
    max_upload_files: int = Field(default=5, validation_alias="MAX_UPLOAD_FILES")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, validation_alias="MAX_UPLOAD_BYTES")
    file_store: str = Field(default="local", pattern="^(local|cloudinary)$", validation_alias="FILE_STORE")

    # Cloudinary (used when FILE_STORE=cloudinary)
    cloudinary_cloud_name: Optional[str] = Field(None, validation_alias="CLOUDINARY_CLOUD_NAME")
    cloudinary_api_key: Optional[str] = Field(None, validation_alias="CLOUDINARY_API_KEY")
    cloudinary_api_secret: Optional[str] = Field(None, validation_alias="CLOUDINARY_API_SECRET")
    cloudinary_folder: str = Field(default="products", validation_alias="CLOUDINARY_FOLDER")

    # Auth
    jwt_secret: str = Field(default="change-me", validation_alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")

    # CORS: comma-separated list or a JSON array
    cors_allowed_origins: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:5173"],
        validation_alias="CORS_ALLOWED_ORIGINS"
    )

    # Kafka
    kafka_enabled: bool = Field(default=False, validation_alias="KAFKA_ENABLED")
    kafka_bootstrap_servers: str = Field(
        default="localhost:9092",
        validation_alias="KAFKA_BOOTSTRAP_SERVERS"
    )
    kafka_events_topic: str = Field(
        default="catalog.events",
        validation_alias="KAFKA_EVENTS_TOPIC"
    )

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Settings loaded from the environment, built once per process"""
    return Settings()
