# app/database.py

"""
Async SQLAlchemy engine and session handling for the roster store.

One DatabaseManager owns the engine and the session factory. It is built from
Settings; SQLite URLs (used by the test suite) get a single shared connection
with foreign keys enforced, every other URL gets a sized connection pool.
"""

import asyncio
import logging
from typing import Optional, AsyncGenerator, Dict, Any
from contextlib import asynccontextmanager

from sqlalchemy import text, event
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from .config import Settings, get_settings
from .models import Base

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Point plain PostgreSQL URLs at the asyncpg driver."""
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://") :]
    return url


def engine_options(url: str, settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.DATABASE_ECHO}
    if url.startswith("sqlite"):
        # In-memory databases live as long as their connection
        options.update(
            poolclass=StaticPool, connect_args={"check_same_thread": False}
        )
    else:
        pool = settings.database_config
        options.update(
            pool_size=pool["pool_size"],
            max_overflow=pool["max_overflow"],
            pool_timeout=pool["pool_timeout"],
            pool_recycle=pool["pool_recycle"],
            pool_pre_ping=True,
        )
    return options


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Holds the async engine and hands out sessions."""

    def __init__(self) -> None:
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self.session_factory is not None

    async def initialize(
        self,
        settings: Optional[Settings] = None,
        database_url: Optional[str] = None,
        attempts: int = 3,
        backoff_seconds: float = 1.0,
    ) -> None:
        """Create the engine and check connectivity, retrying with linear backoff."""
        if self.is_initialized:
            logger.warning("DatabaseManager.initialize called twice; keeping engine")
            return

        settings = settings or get_settings()
        url = normalize_database_url(database_url or settings.DATABASE_URL)
        if not url:
            raise ValueError("DATABASE_URL is not configured")

        failure: Optional[BaseException] = None
        for attempt in range(1, attempts + 1):
            engine = create_async_engine(url, **engine_options(url, settings))
            if engine.dialect.name == "sqlite":
                event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except Exception as e:
                failure = e
                await engine.dispose()
                logger.error(f"Database connection attempt {attempt}/{attempts} failed: {e}")
                if attempt < attempts:
                    await asyncio.sleep(backoff_seconds * attempt)
                continue

            self.engine = engine
            self.session_factory = async_sessionmaker(
                bind=engine, expire_on_commit=False, class_=AsyncSession
            )
            logger.info(f"Database ready ({engine.dialect.name})")
            return

        raise RuntimeError(
            f"Could not connect to the database after {attempts} attempts"
        ) from failure

    def _require_factory(self) -> async_sessionmaker:
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """A session whose uncommitted work is rolled back on error."""
        async with self._require_factory()() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """A session committed when the block exits cleanly."""
        async with self._require_factory()() as session:
            async with session.begin():
                yield session

    async def create_all_tables(self) -> None:
        self._require_factory()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Roster tables created")

    async def drop_all_tables(self) -> None:
        self._require_factory()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Roster tables dropped")

    def pool_status(self) -> Dict[str, Any]:
        if self.engine is None:
            return {"initialized": False}
        pool = self.engine.sync_engine.pool
        return {
            "initialized": True,
            "pool_class": type(pool).__name__,
            "status": pool.status(),
        }

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.session_factory = None


# Process-wide manager used by get_db / init_db
db_manager = DatabaseManager()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Session dependency for whatever layer drives the services."""
    async with db_manager.session() as session:
        yield session


async def init_db(
    settings: Optional[Settings] = None,
    create_tables: bool = False,
) -> DatabaseManager:
    await db_manager.initialize(settings)
    if create_tables:
        await db_manager.create_all_tables()
    return db_manager


async def check_db_health() -> Dict[str, Any]:
    """Run a trivial query through the global manager."""
    if db_manager.engine is None:
        return {"status": "unhealthy", "error": "Database not initialized"}
    try:
        async with db_manager.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "pool": db_manager.pool_status()}


__all__ = [
    "Base",
    "DatabaseManager",
    "db_manager",
    "get_db",
    "init_db",
    "check_db_health",
    "normalize_database_url",
]
