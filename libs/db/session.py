from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.db.config import get_session_factory


def get_db_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    FastAPI dependency returning the session factory.

    Services that own their transaction boundaries (the order lifecycle)
    open their own sessions from this factory instead of sharing one.
    """
    return get_session_factory()


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()
