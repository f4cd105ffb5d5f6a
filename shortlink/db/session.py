"""
Database Session Management

This module handles async database connections using SQLAlchemy's async engine.
Uses the database abstraction layer to support different database backends.

Key Features:
- Database abstraction: engine configuration comes from the adapter
- Per-app engine: each application builds its engine from its own settings
  and keeps it (with its session factory) on app.state
- Async session management: proper async context management
- Error handling: automatic rollback on exceptions
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from shortlink.db import models  # noqa: F401  (registers tables on SQLModel.metadata)
from shortlink.db.sqlite_adapter import get_database_adapter


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine for a connection string through its adapter."""
    return get_database_adapter(database_url).create_engine(database_url)


def make_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    """Create a session factory for the given engine."""
    return async_sessionmaker(
        bind,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Links stay readable after the insert commits
        autoflush=False,
    )


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    Sessions come from the session factory of the application serving the
    request. The link store commits its own writes; this dependency only
    guarantees a rollback when the request fails midway and closes the session.

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with request.app.state.session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine) -> None:
    """Create missing tables (migrations remain the source of truth in production)."""
    async with bind.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
