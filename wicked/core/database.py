#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Database engine and session factory.

The engine is created lazily from ``Settings.database_url``.  SQLite
connections get ``PRAGMA foreign_keys=ON`` so that removing a page also
removes its versions at the database level.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from .config import get_settings


# -----------------------------------------------------------------------------

class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""
    pass


# -----------------------------------------------------------------------------

def _enable_sqlite_fks(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    settings = get_settings()
    db_url  = url  or settings.database_url
    db_echo = echo if echo is not None else settings.db_echo

    kwargs: dict = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_size"]    = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_max_overflow

    engine = create_async_engine(db_url, echo=db_echo, **kwargs)
    if db_url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_fks)
    return engine


# -----------------------------------------------------------------------------

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db(url: str | None = None, echo: bool | None = None) -> None:
    """Initialise the engine and session factory.  Call once at startup."""
    global _engine, _session_factory
    _engine = make_engine(url, echo)
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_engine() -> AsyncEngine:
    if _engine is None:
        init_db()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        init_db()
    return _session_factory


# -----------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a request-scoped session."""
    async with session_scope() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Commit on success, roll back on any exception."""
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# -----------------------------------------------------------------------------

async def create_all_tables() -> None:
    """Create all tables (dev / test only; use Alembic in production)."""
    import wicked.models.models  # noqa: F401  (registers the tables on Base)

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# -----------------------------------------------------------------------------
