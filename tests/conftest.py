"""
Test infrastructure for the comments service.

Strategy
--------
- SQLite in-memory via aiosqlite stands in for Postgres.  StaticPool keeps
  every session on the single connection that owns the in-memory database.
- The engine is built per test (through ``database.build_engine`` so the
  SQL query counter is attached) and the schema is created fresh, which
  gives each test an isolated database.
- ``InMemoryCache`` replaces Redis; it follows the same get/set/delete
  contract, including returning None on a miss.
- The app's ``get_store`` and ``get_db`` dependencies are overridden so HTTP
  tests run against the same store and database as the direct tests.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from comment_svc.cache import InMemoryCache
from comment_svc.database import Base, build_engine, build_session_factory, get_db
from comment_svc.dependencies import get_store
from comment_svc.errors import BackendUnavailableError
from comment_svc.main import app
from comment_svc.repository import InMemoryCommentRepository, SqlCommentRepository
from comment_svc.services.comment_service import CommentStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine_test():
    """Create all tables before each test, drop after to guarantee isolation."""
    engine = build_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine_test):
    return build_session_factory(engine_test)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class FailingCache(InMemoryCache):
    """InMemoryCache that raises BackendUnavailableError on selected calls."""

    def __init__(self, fail_get=False, fail_set=False, fail_delete=False):
        super().__init__()
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.fail_delete = fail_delete

    async def get(self, key):
        if self.fail_get:
            raise BackendUnavailableError("cache down", "cache")
        return await super().get(key)

    async def set(self, key, value, ttl=None):
        if self.fail_set:
            raise BackendUnavailableError("cache down", "cache")
        await super().set(key, value, ttl)

    async def delete(self, key):
        if self.fail_delete:
            raise BackendUnavailableError("cache down", "cache")
        await super().delete(key)


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def failing_cache():
    """Factory: ``failing_cache(fail_get=True)`` etc."""
    return FailingCache


@pytest.fixture
def sql_repository(session_factory) -> SqlCommentRepository:
    return SqlCommentRepository(session_factory)


@pytest.fixture
def store(sql_repository, cache) -> CommentStore:
    """CommentStore on SQLite + InMemoryCache with list invalidation on write."""
    return CommentStore(sql_repository, cache)


@pytest.fixture
def memory_repository() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def async_client(store, cache, session_factory) -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport.

    ASGITransport does not run the lifespan, so the store and cache are
    attached to ``app.state`` and the dependencies overridden here.
    """
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_db] = override_get_db
    app.state.cache = cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
