"""
ProjectHub Files - test configuration and fixtures
"""
import os
import tempfile
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Point the app at throwaway locations before it is imported
_TEST_ROOT = tempfile.mkdtemp(prefix="projecthub-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["FILE_STORAGE_PATH"] = os.path.join(_TEST_ROOT, "uploads")

from projecthub.main import app
from projecthub.database import get_db
from projecthub.models import Base
from projecthub.schemas.file import FileMetadata
from projecthub.services.chain_locks import ChainLocks
from projecthub.services.file_storage import FileStorageService, get_file_storage
from projecthub.services.versioned_file_store import VersionedFileStore


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database file per test."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def locks() -> ChainLocks:
    return ChainLocks()


@pytest.fixture
def store(db_session, locks) -> VersionedFileStore:
    return VersionedFileStore(db_session, locks=locks)


@pytest.fixture
def storage(tmp_path) -> FileStorageService:
    return FileStorageService(base_path=tmp_path / "uploads")


@pytest.fixture
def metadata_factory():
    """Build FileMetadata for uploads that never touch blob storage."""
    counter = {"n": 0}

    def _make(name: str = "spec.pdf", uploader_id: int = 3, size: int = 128) -> FileMetadata:
        counter["n"] += 1
        return FileMetadata(
            uploader_id=uploader_id,
            original_name=name,
            mime_type="application/pdf",
            byte_size=size,
            storage_path=f"/blobs/{counter['n']}-{name}",
        )

    return _make


@pytest.fixture
async def client(session_factory, storage) -> AsyncGenerator[AsyncClient, None]:
    """Test client with database and blob storage overrides."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
