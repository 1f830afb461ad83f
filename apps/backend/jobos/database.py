"""SQLite engine, sessions and schema setup for the local store.

All data lives in one SQLite file (``settings.database_url``). Connections
run in WAL mode so the event stream and API requests can read while a
write is in progress.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import settings
from .models.base import Base
from .services import change_feed  # noqa: F401  (registers session listeners)


def create_engine_for(database_url: str, echo: bool = False) -> AsyncEngine:
    """Async engine with the SQLite pragmas the store relies on."""
    new_engine = create_async_engine(database_url, echo=echo)

    if new_engine.dialect.name == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return new_engine


engine: AsyncEngine = create_engine_for(settings.database_url, echo=settings.debug)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; commits on success, rolls back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency returning the session factory.

    Streaming endpoints outlive the request-scoped session and open their
    own session when the stream finishes.
    """
    return AsyncSessionLocal


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create any missing tables. Existing data is left untouched."""
    from . import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine and its pooled connections."""
    await engine.dispose()
