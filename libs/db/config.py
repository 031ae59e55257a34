from functools import lru_cache
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import get_settings


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    """Make SQLite transactions take the write lock up front.

    pysqlite normally defers BEGIN until the first DML statement, which lets two
    checkouts read the same stock and then deadlock on upgrade. Emitting
    ``BEGIN IMMEDIATE`` ourselves makes concurrent writers queue on the busy
    timeout instead, and also makes SAVEPOINT behave.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(database_url: str | None = None, **overrides: Any) -> AsyncEngine:
    """Create an async engine for ``database_url`` (defaults to settings)."""
    settings = get_settings()
    url = database_url or settings.DATABASE_URL

    options: dict[str, Any] = {
        "echo": settings.DB_ECHO,
        "future": True,
    }
    if url.startswith("sqlite"):
        options["connect_args"] = {"timeout": settings.SQLITE_BUSY_TIMEOUT}
    else:
        options.update(
            pool_pre_ping=True,  # Test connections before using
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    options.update(overrides)

    engine = create_async_engine(url, **options)
    if url.startswith("sqlite"):
        _install_sqlite_hooks(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Process-wide engine built from settings."""
    return create_engine()


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Process-wide session factory bound to ``get_engine()``."""
    return create_session_factory(get_engine())
