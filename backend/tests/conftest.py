# tests/conftest.py - Shared test fixtures
import os

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOCAL_CACHE_BACKEND"] = "memory"

from auth import AuthService
from availability import CircuitBreaker
from content import EditorIdentity
from document_store import DocumentStore, SqlDocumentStore
from local_cache import LocalCacheStore, MemoryStorage
from models import Base
from main import app
from services import ContentServices, get_content_services


class FlakyStore(DocumentStore):
    """Wraps a store; every call raises while ``failing`` is set."""

    name = "primary store"

    def __init__(self, inner: DocumentStore):
        self.inner = inner
        self.failing = False
        self.calls = 0

    def _guard(self):
        self.calls += 1
        if self.failing:
            raise ConnectionError("primary store offline")

    async def new_id(self, collection):
        self._guard()
        return await self.inner.new_id(collection)

    async def get(self, collection, doc_id):
        self._guard()
        return await self.inner.get(collection, doc_id)

    async def put(self, collection, doc_id, document):
        self._guard()
        await self.inner.put(collection, doc_id, document)

    async def delete(self, collection, doc_id):
        self._guard()
        return await self.inner.delete(collection, doc_id)

    async def list(self, collection, limit=None):
        self._guard()
        return await self.inner.list(collection, limit)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def primary(session_factory):
    return FlakyStore(SqlDocumentStore(session_factory))


@pytest.fixture
def cache():
    return LocalCacheStore(MemoryStorage())


@pytest.fixture
def breaker():
    # stays open until a connectivity check succeeds
    return CircuitBreaker(reset_timeout=None)


@pytest.fixture
def services(primary, cache, breaker):
    return ContentServices(primary=primary, cache=cache, breaker=breaker)


@pytest.fixture
def editor():
    return EditorIdentity(uid="editor-1", display_name="Tommy Vercetti")


@pytest_asyncio.fixture(scope="function")
async def client(services):
    """HTTP test client with overridden service container"""
    app.dependency_overrides[get_content_services] = lambda: services
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def get_auth_headers(role: str = "editor", uid: str = "editor-1", name: str = "Tommy Vercetti") -> dict:
    """Generate auth headers for an editor"""
    token = AuthService.create_access_token({"sub": uid, "name": name, "role": role})
    return {"Authorization": f"Bearer {token}"}
