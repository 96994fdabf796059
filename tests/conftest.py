# tests/conftest.py
import os

# Set up test environment variables BEFORE any other imports
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-recipe-box-tests")
os.environ.setdefault("LOG_FORMAT", "simple")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_blob_store, get_db
from app.core.permissions import CallerContext
from app.domains.attachment.storage import LocalBlobStore
from app.domains.cuisine_type.repository import CuisineTypeRepository
from app.domains.user.service import UserService
from app.main import app
from models import Base
from tests.factories import RecipeFactory

TEST_DATABASE_URL = os.environ["TEST_DATABASE_URL"]


@pytest_asyncio.fixture
async def test_engine():
    """In-memory database shared by every session of one test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """Create a test database session."""
    TestSessionLocal = async_sessionmaker(test_engine, expire_on_commit=False)
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def blob_store(tmp_path):
    """Blob store writing under a per-test temporary directory."""
    return LocalBlobStore(tmp_path / "storage", base_url="/storage")


# User fixtures
@pytest_asyncio.fixture
async def default_roles(test_db):
    return await UserService(test_db).ensure_default_roles()


@pytest_asyncio.fixture
async def admin_user(test_db, default_roles):
    return await UserService(test_db).create_user("Admin", "admin@example.com", ["admin"])


@pytest_asyncio.fixture
async def sub_admin_user(test_db, default_roles):
    return await UserService(test_db).create_user("Sub Admin", "sub@example.com", ["sub-admin"])


@pytest_asyncio.fixture
async def owner_user(test_db, default_roles):
    return await UserService(test_db).create_user("Owner", "owner@example.com", ["owner"])


@pytest_asyncio.fixture
async def other_owner(test_db, default_roles):
    return await UserService(test_db).create_user("Other Owner", "other@example.com", ["owner"])


@pytest.fixture
def admin_caller(admin_user):
    return CallerContext.from_user(admin_user)


@pytest.fixture
def sub_admin_caller(sub_admin_user):
    return CallerContext.from_user(sub_admin_user)


@pytest.fixture
def owner_caller(owner_user):
    return CallerContext.from_user(owner_user)


@pytest.fixture
def other_caller(other_owner):
    return CallerContext.from_user(other_owner)


# Cuisine type fixtures
@pytest_asyncio.fixture
async def cuisine_type(test_db):
    return await CuisineTypeRepository(test_db).create(
        {"name": "Italian", "description": "Pasta and more", "is_active": True}
    )


@pytest_asyncio.fixture
async def inactive_cuisine_type(test_db):
    return await CuisineTypeRepository(test_db).create({"name": "Retired", "is_active": False})


# Recipe fixtures
@pytest.fixture
def make_recipe(test_db, cuisine_type):
    """Persist a recipe built by ``RecipeFactory``."""

    async def _make(owner, **overrides):
        overrides.setdefault("cuisine_type_id", cuisine_type.id)
        recipe = RecipeFactory.build(user_id=owner.id, **overrides)
        test_db.add(recipe)
        await test_db.commit()
        await test_db.refresh(recipe)
        return recipe

    return _make


# HTTP client fixtures
@pytest_asyncio.fixture
async def client(test_db, blob_store):
    """Create a test client with database and storage dependency overrides."""
    app.dependency_overrides[get_db] = lambda: test_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
