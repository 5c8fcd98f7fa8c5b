"""
Pytest configuration and fixtures for backend tests.
"""
import pytest
import pytest_asyncio
from typing import AsyncGenerator

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from app.main import create_application
from app.core.config import Settings
from app.core.database import Database
from app.core.security import hash_password
from app.models.user import UserRole
from app.schemas.auth import UserCreate, UserRecord
from app.schemas.election import VoterCreate, CandidateCreate, CandidateResponse, DeviceCreate, DeviceResponse
from app.models.election import DeviceStatus
from app.storage import Storage, MemoryStorage, SqlStorage


# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_SESSION_SECRET = "test-session-secret-with-at-least-32-chars"

ADMIN_PASSWORD = "admin-password"
OBSERVER_PASSWORD = "observer-password"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        STORAGE_BACKEND="memory",
        SESSION_SECRET=TEST_SESSION_SECRET,
        DEVICE_API_KEY=None,
        DEFAULT_ADMIN_PASSWORD=None,
        SEED_SAMPLE_DATA=False,
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture(params=["memory", "sql"])
async def storage(request) -> AsyncGenerator[Storage, None]:
    """Run every storage-backed test against both backends."""
    if request.param == "memory":
        store = MemoryStorage()
    else:
        store = SqlStorage(Database(TEST_DATABASE_URL))

    await store.connect()
    yield store
    if isinstance(store, SqlStorage):
        await store.database.drop_all()
    await store.close()


@pytest.fixture
def app(settings: Settings, storage: Storage) -> FastAPI:
    """
    Application wired to the test storage.
    ASGITransport does not run the lifespan, so state is set up front.
    """
    return create_application(settings=settings, storage=storage)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Anonymous client; also used for device-facing calls."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client


@pytest_asyncio.fixture
async def test_admin(storage: Storage) -> UserRecord:
    """Create a super admin."""
    return await storage.create_user(UserCreate(
        username="admin",
        password_hash=hash_password(ADMIN_PASSWORD),
        role=UserRole.SUPER_ADMIN,
        full_name="Admin User",
    ))


@pytest_asyncio.fixture
async def test_observer(storage: Storage) -> UserRecord:
    """Create a read-only observer."""
    return await storage.create_user(UserCreate(
        username="observer",
        password_hash=hash_password(OBSERVER_PASSWORD),
        role=UserRole.OBSERVER,
        full_name="Observer User",
    ))


@pytest_asyncio.fixture
async def admin_client(app: FastAPI, test_admin: UserRecord) -> AsyncGenerator[AsyncClient, None]:
    """Client holding a super admin session cookie."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.post(
            "/api/auth/login",
            json={"username": test_admin.username, "password": ADMIN_PASSWORD},
        )
        assert response.status_code == 200
        yield client


@pytest_asyncio.fixture
async def observer_client(app: FastAPI, test_observer: UserRecord) -> AsyncGenerator[AsyncClient, None]:
    """Client holding an observer session cookie."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.post(
            "/api/auth/login",
            json={"username": test_observer.username, "password": OBSERVER_PASSWORD},
        )
        assert response.status_code == 200
        yield client


@pytest_asyncio.fixture
async def test_candidates(storage: Storage) -> list:
    """Create three active candidates in ballot order."""
    return [
        await storage.create_candidate(CandidateCreate(name="Candidate A", party="Party Alpha", position=1)),
        await storage.create_candidate(CandidateCreate(name="Candidate B", party="Party Beta", position=2)),
        await storage.create_candidate(CandidateCreate(name="Candidate C", party="Party Gamma", position=3)),
    ]


@pytest_asyncio.fixture
async def test_candidate(test_candidates: list) -> CandidateResponse:
    return test_candidates[0]


@pytest_asyncio.fixture
async def test_voter(storage: Storage):
    """Register voter V001 with fingerprint hash123."""
    return await storage.create_voter(VoterCreate(
        voter_id="V001",
        full_name="Jane Doe",
        fingerprint_hash="hash123",
    ))


@pytest_asyncio.fixture
async def test_device(storage: Storage) -> DeviceResponse:
    """Register one online terminal."""
    return await storage.create_device(DeviceCreate(
        device_id="machine_01",
        name="Device-01",
        status=DeviceStatus.ONLINE,
        battery_level=80,
        location="Building A",
    ))
