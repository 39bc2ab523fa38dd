from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from alembic import command
from alembic.config import Config
from fastapi import Request
from typing import Iterator, Optional
import asyncio
import logging
import os

from storefront.config import Settings

logger = logging.getLogger(__name__)


Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses (and their ON DELETE CASCADE) unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Engine and session factory with an explicit connect/dispose lifecycle"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def _engine_options(self) -> dict:
        url = self.settings.database_url
        if url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url.rstrip("/") == "sqlite:":
                # One shared connection, otherwise every session sees an empty database
                options["poolclass"] = StaticPool
            return options
        return {
            "pool_pre_ping": True,
            "pool_size": self.settings.db_pool_size,
            "max_overflow": self.settings.db_max_overflow,
            "pool_timeout": 10,  # 10 second timeout for getting a connection from pool
        }

    def connect(self) -> Engine:
        if self.engine is None:
            self.engine = create_engine(self.settings.database_url, **self._engine_options())
            if self.settings.database_url.startswith("sqlite"):
                event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
            logger.info("Database engine created for %s", self._display_url())
        return self.engine

    def dispose(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self._session_factory = None

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._session_factory()

    def create_all(self) -> None:
        """Create tables straight from the models (tests and local development)"""
        # Models register themselves on Base.metadata when imported
        import storefront.models  # noqa: F401
        Base.metadata.create_all(bind=self.connect())

    def _display_url(self) -> str:
        # Never log credentials
        url = self.settings.database_url
        if "@" in url:
            return url.split("@")[-1]
        return url

    async def wait_for_database(self, max_retries: int = 30, retry_delay: float = 2) -> bool:
        """Wait for database to be available with retry logic"""
        logger.info(f"Waiting for database connection to {self._display_url()}...")
        engine = self.connect()

        for attempt in range(1, max_retries + 1):
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1")).fetchone()
                logger.info("Database connection successful")
                return True
            except Exception as e:
                if attempt < max_retries:
                    logger.warning(f"Database connection attempt {attempt}/{max_retries} failed: {e}. Retrying in {retry_delay}s...")
                    await asyncio.sleep(retry_delay)
                else:
                    logger.error(f"Database connection failed after {max_retries} attempts: {e}")
                    raise
        return False

    async def run_migrations(self) -> None:
        """Bring the schema to head with Alembic"""
        logger.info("Running database migrations...")
        await self.wait_for_database()

        alembic_ini_path = "alembic.ini"
        if not os.path.exists(alembic_ini_path):
            # storefront/db/database.py -> <project root>/alembic.ini
            file_dir = os.path.dirname(os.path.abspath(__file__))
            project_root = os.path.dirname(os.path.dirname(file_dir))
            alembic_ini_path = os.path.join(project_root, "alembic.ini")

        if not os.path.exists(alembic_ini_path):
            raise FileNotFoundError(
                f"Could not find alembic.ini. Current directory: {os.getcwd()}, "
                f"Tried: alembic.ini and {alembic_ini_path}"
            )

        logger.info(f"Using Alembic config: {os.path.abspath(alembic_ini_path)}")
        alembic_cfg = Config(alembic_ini_path)
        alembic_cfg.set_main_option("sqlalchemy.url", self.settings.database_url)

        try:
            # Alembic is synchronous; keep it off the event loop
            await asyncio.wait_for(
                asyncio.to_thread(command.upgrade, alembic_cfg, "head"),
                timeout=60.0
            )
        except asyncio.TimeoutError:
            logger.error("Database migrations timed out after 60 seconds")
            raise
        except Exception as migration_error:
            logger.error(f"Migration error: {migration_error}", exc_info=True)
            raise

        logger.info("Database migrations completed successfully")


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting database session"""
    db = get_database(request).session()
    try:
        yield db
    finally:
        db.close()
