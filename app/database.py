"""Database configuration and connection management."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings


def _async_url(url: str) -> str:
    """Convert a sync PostgreSQL URL to the asyncpg driver."""
    return url.replace("postgresql://", "postgresql+asyncpg://")


def _engine_options(url: str) -> dict[str, Any]:
    """Connection pooling options; SQLite engines keep the driver defaults."""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": settings.app_name,
            },
        },
    }


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine for a service database."""
    url = _async_url(url)
    return create_async_engine(url, echo=settings.debug, **_engine_options(url))


# Appointment service database
engine: AsyncEngine = build_engine(settings.database_url)

# Notification service database
notification_engine: AsyncEngine = build_engine(settings.notification_database_url)

# Async session factories
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

NotificationSessionLocal = async_sessionmaker(
    notification_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting appointment database sessions.

    Closing the session rolls back anything the handler left uncommitted.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def get_notification_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting notification database sessions."""
    async with NotificationSessionLocal() as session:
        yield session


def get_notification_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """
    Dependency for work that outlives the request.

    Background tasks run after request-scoped sessions are closed, so they
    open their own session from this factory.
    """
    return NotificationSessionLocal


async def check_database_connection(db_engine: AsyncEngine = engine) -> bool:
    """Check if database connection is healthy."""
    try:
        async with db_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
