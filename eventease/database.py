from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from eventease.config import get_settings
from eventease.logging_config import get_logger

settings = get_settings()
logger = get_logger("database")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine for ``url``.

    SQLite only enforces foreign keys (and so the registration cascades)
    when asked to on every connection.
    """
    engine = create_async_engine(url, **kwargs)
    if make_url(url).get_backend_name() == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


# Create async engine for the database
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG, pool_pre_ping=True)

# Create sessionmaker
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Base model class
Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request.

    Commits when the handler returns normally and rolls back if it raises,
    so a request never leaves half-applied writes.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_db_and_tables() -> None:
    """Create missing tables. Production schemas are managed by Alembic."""
    import eventease.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database tables ensured on {make_url(settings.DATABASE_URL).render_as_string(hide_password=True)}")


async def dispose_engine() -> None:
    await engine.dispose()
    logger.info("Database connections closed")
