"""
Database engines and session management.

Two SQLite stores back the service: the read-only reference store and the
mutable user store. Both use async SQLAlchemy engines over aiosqlite.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from preparea.config import DATA_DIR, settings
from preparea.models.db import Base

# User store engine
engine = create_async_engine(
    settings.user_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Reference store engine
content_engine = create_async_engine(
    settings.content_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a user store session.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Initialize user store tables.

    Creates all tables defined in the ORM models.
    Should be called once at application startup.
    """
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

