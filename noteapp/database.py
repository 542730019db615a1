"""
NoteApp: Database Session Management
=====================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine with connection pooling and provides a
       session dependency that rolls back on error and always closes.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Persistence context:
    Each request receives its own AsyncSession from `get_db_session()`.
    There is no shared session or global handle; the pooled engine is the
    only process-wide object. Services commit their own unit of work, so a
    failed write surfaces inside the handler that issued it.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings.
    SQLite (aiosqlite) URLs skip the pool sizing arguments and use the
    dialect's default pool.
"""

from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from noteapp.config import settings


def _engine_options(database_url: str) -> dict:
    """Pool options for the configured backend."""
    options = {
        # Echo SQL in DEBUG mode for development visibility
        "echo": settings.log_level == "DEBUG",
    }
    if make_url(database_url).get_backend_name() == "sqlite":
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url),
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: a note stays readable after commit, which the
# redirect and template paths rely on
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic and create_tables() read.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On error: rolls back the transaction
        4. Always: closes the session (returns connection to pool)

    Services call `commit()` themselves, so nothing is committed here.

    Example usage in a route:
        @router.get("/notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session)):
            notes = await note_service.list_notes(db)
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables() -> None:
    """
    What:  Creates every table registered on Base.metadata (no-op if present).
    When:  At startup when DB_AUTO_CREATE is enabled, and in the test suite.
    """
    # Register models on the metadata before create_all
    from noteapp.models import note  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
