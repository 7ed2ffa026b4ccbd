"""Async engine and session factory for the payouts database.

Every connection runs with a server-side statement_timeout, so a blocked
vendor lock or row lock surfaces as a DataAccessError instead of hanging
the request.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


def _server_settings() -> dict[str, str]:
    return {
        "application_name": settings.APP_NAME,
        "statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS),
    }


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    connect_args={"server_settings": _server_settings()},
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request; services own commit/rollback."""
    async with async_session_factory() as session:
        yield session
