"""
NoteApp: Test Configuration (conftest.py)
==========================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Environment:
    The settings singleton reads the environment when noteapp.config is first
    imported, so the overrides below run before any noteapp import. Tests use
    a throwaway SQLite file through aiosqlite.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock AsyncSession (no real DB needed)
    ├── db_tables: Creates the schema, drops it and disposes the engine after
    │   ├── test_client: HTTPX AsyncClient bound to the app via ASGITransport
    │   │   └── csrf_token: Token scraped from the create form for POSTs
    │   ├── seed_note: Inserts a note directly, bypassing HTTP
    │   └── fetch_notes: Reads all notes in a fresh session
    └── failing_db: Installs a session override whose queries raise
"""

import os
import re
import tempfile
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any noteapp import)
# ══════════════════════════════════════════════════════════════════════════

_TEST_DIR = tempfile.mkdtemp(prefix="noteapp_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_AUTO_CREATE"] = "false"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.exc import OperationalError  # noqa: E402

CSRF_RE = re.compile(r'name="csrf_token" value="([^"]+)"')


def extract_csrf_token(html: str) -> str:
    match = CSRF_RE.search(html)
    assert match, "form page did not contain a csrf_token field"
    return match.group(1)


def db_down_error() -> OperationalError:
    return OperationalError("SELECT notes.id FROM notes", {}, Exception("database is down"))


# ══════════════════════════════════════════════════════════════════════════
# Unit-Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_note(mock_db_session):
            mock_db_session.get.return_value = note
            result = await note_service.get_note(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_note_data():
    """A dictionary matching the Note model fields."""
    return {
        "id": 1,
        "title": "Groceries",
        "content": "Milk, eggs",
        "created_at": datetime(2024, 1, 15, 12, 0, 0),
    }


# ══════════════════════════════════════════════════════════════════════════
# Database & HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_tables():
    """Create all tables for one test and drop them afterwards."""
    from noteapp.database import Base, create_tables, engine

    await create_tables()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections must not outlive this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(db_tables):
    """
    Provides an async HTTP test client for endpoint testing.

    Cookies (the session holding the anti-forgery token) persist across
    requests made with the same client.
    """
    from noteapp.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def csrf_token(test_client):
    """Anti-forgery token issued to test_client's session."""
    response = await test_client.get("/notes/create")
    assert response.status_code == 200
    return extract_csrf_token(response.text)


@pytest.fixture
def seed_note(db_tables):
    """Insert a note directly and return it."""
    from noteapp.database import async_session_factory
    from noteapp.models.note import Note

    async def _seed(title="Groceries", content="Milk, eggs", created_at=None):
        async with async_session_factory() as session:
            note = Note(title=title, content=content)
            if created_at is not None:
                note.created_at = created_at
            session.add(note)
            await session.commit()
            return note

    return _seed


@pytest.fixture
def fetch_notes(db_tables):
    """Read every stored note (ordered by id) in a fresh session."""
    from noteapp.database import async_session_factory
    from noteapp.models.note import Note

    async def _fetch():
        async with async_session_factory() as session:
            result = await session.execute(select(Note).order_by(Note.id))
            return list(result.scalars().all())

    return _fetch


@pytest.fixture
def failing_db(test_client):
    """
    Replace the per-request session with one whose every query fails.

    Returns the mock so a test can inspect rollback/commit calls.
    """
    from noteapp.database import get_db_session
    from noteapp.main import app

    session = AsyncMock()
    session.execute = AsyncMock(side_effect=db_down_error())
    session.get = AsyncMock(side_effect=db_down_error())
    session.commit = AsyncMock(side_effect=db_down_error())
    session.delete = AsyncMock()
    session.rollback = AsyncMock()
    session.add = MagicMock()

    async def _override():
        yield session

    app.dependency_overrides[get_db_session] = _override
    return session
