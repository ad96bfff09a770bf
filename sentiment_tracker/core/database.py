"""Database setup with async SQLAlchemy."""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sentiment_tracker.core.config import settings
import logging
import re
from typing import AsyncGenerator

logger = logging.getLogger(__name__)


def mask_db_url(url: str) -> str:
    """Mask password in database URL for safe logging."""
    return re.sub(r'://([^:]+):([^@]+)@', r'://\1:****@', url)


def enable_sqlite_foreign_keys(target: AsyncEngine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores ON DELETE RESTRICT/CASCADE unless the pragma is set
    per connection.
    """
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


logger.info(f"Connecting to database: {mask_db_url(settings.database_url)}")

engine_args = {
    "echo": settings.log_level == "DEBUG",  # Log all SQL if DEBUG
}

if not settings.database_url.startswith("sqlite"):
    engine_args.update({
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 3600,
    })
    logger.info(
        "Configuring connection pool: pool_size=10, max_overflow=20, "
        "pool_timeout=30s, pool_recycle=3600s"
    )

engine = create_async_engine(settings.database_url, **engine_args)
enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions.

    NOTE: This dependency does NOT auto-commit. Services must explicitly
    call await session.commit() when needed.
    """
    logger.debug("Creating new database session")

    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session rolled back due to error: {str(e)}", exc_info=True)
            raise
        finally:
            logger.debug("Database session closed")


def get_async_session():
    """Context manager for getting database sessions outside of FastAPI requests."""
    return AsyncSessionLocal()


async def init_db(target: AsyncEngine = None):
    """Create all tables that do not exist yet."""
    # Models must be registered on Base.metadata before create_all
    import sentiment_tracker.models  # noqa: F401

    target = target or engine
    logger.info("Initializing database tables...")

    try:
        async with target.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database tables: {str(e)}", exc_info=True)
        logger.debug(f"Database URL (masked): {mask_db_url(settings.database_url)}")
        raise
