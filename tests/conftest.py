"""
Test infrastructure for the games catalog.

Strategy
--------
- SQLite in-memory via aiosqlite, so no Postgres instance is needed.
- StaticPool makes every session share the single in-memory connection;
  a second connection would see an empty database.
- A fresh engine (and schema) is built per test and ``get_db`` is
  overridden to use it, giving each test isolated state.
- Redis is disabled with ``cache._redis = None``; the CacheManager treats
  that as "always miss, never write", so tests run the real query path.
- Tests that need no database (compiler, reducer, client state over an
  in-memory store) don't request any of these fixtures.
"""
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.cache import cache
from app.database import create_tables, get_db, make_engine, make_session_factory
from app.main import app
from app.models import Game
from app.stores import MemoryGameStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Newest first: Stray, Forza, Hades, Cat Quest II, Celeste, Cat Quest, Catherine.
CATALOG = [
    {"title": "Cat Quest", "genre": "rpg", "platform": "switch", "release_date": date(2017, 8, 8)},
    {"title": "Cat Quest II", "genre": "rpg", "platform": "pc", "release_date": date(2019, 9, 24)},
    {"title": "Stray", "genre": "adventure", "platform": "ps5", "release_date": date(2022, 7, 19)},
    {"title": "Hades", "genre": "action", "platform": "pc", "release_date": date(2020, 9, 17)},
    {"title": "Celeste", "genre": "platformer", "platform": "switch", "release_date": date(2018, 1, 25)},
    {"title": "Catherine", "genre": "puzzle", "platform": "ps5", "release_date": date(2011, 2, 17)},
    {"title": "Forza Horizon 5", "genre": "racing", "platform": "xbox", "release_date": date(2021, 11, 9)},
]


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def session_factory():
    """Build a fresh in-memory database and yield its session factory."""
    engine_test = make_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine_test)
    yield make_session_factory(engine_test)
    await engine_test.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A live AsyncSession for tests that talk to the database directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """Insert CATALOG and return the stored rows as dicts, in insertion order."""
    async with session_factory() as session:
        games = [Game(**row) for row in CATALOG]
        session.add_all(games)
        await session.commit()
        return [{"id": g.id, "title": g.title} for g in games]


@pytest_asyncio.fixture
async def async_client(session_factory) -> AsyncClient:
    """
    httpx.AsyncClient wired to the FastAPI app via ASGITransport, with
    ``get_db`` pointed at the per-test database and Redis disabled.
    """
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

@pytest.fixture
def memory_store() -> MemoryGameStore:
    return MemoryGameStore({"id": i + 1, **row} for i, row in enumerate(CATALOG))
