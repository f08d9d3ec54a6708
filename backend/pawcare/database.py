"""
PawCare Backend — Database Session Management
===============================================

What:  Declarative base for the ORM models, engine construction per backend,
       and the per-request session dependency.
Why:   Every storage adapter builds its engine the same way and every route
       gets its session the same way, regardless of which engine is active.
How:   The active StorageAdapter (app.state.storage) owns the engine and the
       session factory. `get_db_session` borrows a session from it, commits on
       success and rolls back on any error.

Transaction model:
    One session per request, committed once when the handler returns.
    A multi-step write (customer → pet → booking) is therefore all-or-nothing:
    if the booking insert fails, the customer and pet inserts are rolled back.
"""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all PawCare ORM models.

    All models share one metadata object, which is what the adapters'
    `initialize()` and Alembic's env.py create tables from.
    """

    def to_dict(self) -> Dict[str, Any]:
        """Column values as a plain dict (the adapter's row shape)."""
        return {column.key: getattr(self, column.key) for column in self.__table__.columns}


# ── Engine Construction ───────────────────────────────────────────────────
def build_engine(url: str, **engine_kwargs: Any) -> AsyncEngine:
    """
    Create an async engine for `url`.

    Pool options are passed through by the server-engine adapters; the
    SQLite adapter passes none (aiosqlite uses its own pool class).
    """
    return create_async_engine(url, **engine_kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: rows already loaded stay readable after commit,
    # which background notifications rely on
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Makes sure the active adapter created its tables and seed rows
        2. Opens a session from the adapter's factory
        3. On success: commits (all writes of the request land together)
        4. On error: rolls back and re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)
    """
    storage = request.app.state.storage
    await storage.ensure_initialized()

    async with storage.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
