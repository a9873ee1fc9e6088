"""
Database setup.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storefront.db._tables import Base

type SessionFactory = async_sessionmaker[AsyncSession]


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction ``BEGIN IMMEDIATE``.

    pysqlite defers BEGIN until the first write, so two transactions that
    both read first can deadlock on upgrade. Taking the write lock up front
    serializes them; waiters block on the busy timeout instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    if url.startswith("sqlite"):
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": 30})
        _serialize_sqlite_writers(engine)
        return engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


async def create_database(
    url: str = "sqlite+aiosqlite:///./storefront.db",
    echo: bool = False,
) -> tuple[SessionFactory, AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    engine = create_engine(url, echo=echo)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = ("SessionFactory", "create_engine", "create_database")
