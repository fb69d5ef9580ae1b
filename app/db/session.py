"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
Each request and each scheduled job gets its own session; nothing is shared
between invocations except the engine's connection pool.
"""

from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """
    Pool options for the configured database.

    WHY: SQLite (local development) does not use a sized connection pool,
    while PostgreSQL benefits from pre-ping and explicit pool limits.
    """
    if url.startswith("sqlite"):
        return {"echo": settings.DEBUG}
    return {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_async_engine(
    settings.async_database_url,
    **_engine_options(settings.async_database_url),
)

# expire_on_commit=False keeps loaded invoices usable after the status commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Commits when the request handler finishes without error and rolls
    back otherwise.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
