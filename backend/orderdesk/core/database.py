# backend/orderdesk/core/database.py
"""Database engine and session management.

Supports PostgreSQL (asyncpg) and SQLite (aiosqlite), picked from DATABASE_URL.
"""

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import NullPool
from orderdesk.core.config import settings
import logging

logger = logging.getLogger(__name__)


def configure_sqlite_engine(engine: AsyncEngine) -> AsyncEngine:
    """Make every SQLite transaction take the write lock up front.

    pysqlite defers BEGIN until the first DML statement, so two sessions that
    read and then write can deadlock on lock promotion. BEGIN IMMEDIATE makes
    concurrent writers wait on the busy timeout instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def _create_engine() -> AsyncEngine:
    """Create the engine matching DATABASE_URL."""
    db_url = settings.effective_database_url

    if db_url.startswith("postgresql://") or db_url.startswith("postgresql+asyncpg://"):
        if not db_url.startswith("postgresql+asyncpg://"):
            db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")

        logger.info(f"Using PostgreSQL database: {db_url.split('@')[-1]}")
        return create_async_engine(
            db_url,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            echo=False,
        )

    elif db_url.startswith("sqlite://") or db_url.startswith("sqlite+aiosqlite://"):
        # Development / tests
        if db_url.startswith("sqlite://"):
            db_url = db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        logger.info(f"Using SQLite database: {db_url}")
        return configure_sqlite_engine(
            create_async_engine(
                db_url,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            )
        )

    else:
        raise ValueError(f"Unsupported database URL scheme: {db_url}")


engine = _create_engine()
async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_session_factory() -> sessionmaker:
    """Session factory used by the order services (one session per store call)."""
    return async_session
