"""Database session and engine management."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings


def create_engine_for(database_url: str) -> AsyncEngine:
    """Build the async engine with the bounded pool shared by all requests."""

    settings = get_settings()
    options: dict[str, Any] = {
        "future": True,
        "echo": False,
        "pool_pre_ping": True,
        "pool_recycle": settings.db_pool_recycle_seconds,
    }
    if ":memory:" not in database_url:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout_seconds,
        )

    if database_url.startswith("sqlite"):
        options["connect_args"] = {"timeout": settings.db_lock_timeout_seconds}
        new_engine = create_async_engine(database_url, **options)
        _use_immediate_transactions(new_engine)
        return new_engine

    if database_url.startswith("postgresql"):
        timeout_ms = int(settings.db_lock_timeout_seconds * 1000)
        options["connect_args"] = {"server_settings": {"lock_timeout": str(timeout_ms)}}
    return create_async_engine(database_url, **options)


def _use_immediate_transactions(sqlite_engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite's deferred BEGIN lets two transactions read the same snapshot and
    then fail on upgrade; BEGIN IMMEDIATE queues them on the busy timeout instead.
    """

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sqlite_engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine_for(get_settings().database_url)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


def init_engine(database_url: str) -> AsyncEngine:
    """Point the module-level engine and session factory at another database."""

    global engine, async_session_factory
    engine = create_engine_for(database_url)
    async_session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    return engine


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Provide a session; callers open their own transaction scope."""

    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
