"""
Diary API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the whole suite.
How:   Real SQLite databases (aiosqlite) and real image directories, both
       under pytest's tmp_path, so repository, service and HTTP tests run
       the same code paths as production.

Fixture Hierarchy (all function-scoped):
    ├── image_root / image_service: temporary image tree
    ├── db_engine → session_factory → db_session: fresh schema per test
    ├── diary_service: DiaryService over db_session + image_service
    ├── test_client: HTTPX AsyncClient against create_app()
    └── png_bytes / jpeg_bytes: tiny image payloads
"""

import os
import tempfile

# Settings are read at import time; set them before any diary_api import
_scratch = tempfile.mkdtemp(prefix="diary_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_scratch, 'app.db')}"
os.environ["IMAGE_ROOT"] = os.path.join(_scratch, "images")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from diary_api.database import Base, get_db_session
from diary_api.repositories.diary_repository import DiaryRepository
from diary_api.services.diary_service import DiaryService
from diary_api.services.image_service import ImageService

TEST_MAX_FILE_SIZE = 1_048_576


@pytest.fixture
def image_root(tmp_path):
    root = tmp_path / "images"
    root.mkdir()
    return root


@pytest.fixture
def image_service(image_root):
    return ImageService(image_root=str(image_root), max_file_size=TEST_MAX_FILE_SIZE)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A throwaway SQLite database with the diary schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'diary.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def diary_repository(db_session):
    return DiaryRepository(db_session)


@pytest.fixture
def diary_service(diary_repository, image_service):
    return DiaryService(repository=diary_repository, image_service=image_service)


@pytest_asyncio.fixture
async def test_client(session_factory, image_service):
    """
    HTTPX AsyncClient talking to a fresh app.

    The session dependency is replaced by one bound to the test database
    that keeps the production commit/rollback behaviour.
    """
    from diary_api.main import create_app

    app = create_app(image_service=image_service)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def png_bytes():
    """PNG signature followed by an IHDR-sized stub."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 13


@pytest.fixture
def jpeg_bytes():
    """Minimal JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
