"""
Test infrastructure for the Car Listing API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- bcrypt runs at its minimum cost factor and the signing secret is fixed;
  both are set through the environment before ``app.config`` is imported.
"""
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-signing-secret-0123456789abcdef0123")

import copy  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import update  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db, session_scope  # noqa: E402
from app.main import app  # noqa: E402
from app.middleware import install_query_counter  # noqa: E402
from app.models import User  # noqa: E402

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override — replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with session_scope(async_session_test) as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------

CAR_PAYLOAD = {
    "make": "Maruti Suzuki",
    "model": "Swift",
    "year": 2020,
    "price": 600000,
    "mileage": 25000,
    "fuelType": "petrol",
    "transmission": "manual",
    "bodyType": "hatchback",
    "color": "Red",
    "description": "Single owner, full service history",
    "features": ["ABS", "Airbags"],
    "images": [{"url": "https://img.example.com/swift.jpg", "alt": "Front view"}],
    "location": {"city": "Mumbai", "state": "Maharashtra"},
    "seller": {"name": "Ravi Kumar", "phone": "+91 9876543210"},
}


def car_payload(**overrides) -> dict:
    """Return a valid listing payload with top-level keys overridden."""
    payload = copy.deepcopy(CAR_PAYLOAD)
    payload.update(overrides)
    return payload


async def register(client: AsyncClient, username: str, email: str, password: str = "secret123") -> dict:
    """Register a user through the API and return the response ``data``."""
    resp = await client.post("/api/auth/register", json={
        "username": username,
        "email": email,
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def user_auth(async_client: AsyncClient) -> dict:
    """A registered regular user: ``{"user": ..., "headers": ...}``."""
    data = await register(async_client, "seller_one", "seller.one@example.com")
    return {"user": data["user"], "headers": bearer(data["accessToken"]), "tokens": data}


@pytest_asyncio.fixture
async def admin_auth(async_client: AsyncClient) -> dict:
    """A registered user promoted to the admin role."""
    data = await register(async_client, "site_admin", "admin@example.com")
    async with async_session_test() as session:
        await session.execute(
            update(User).where(User.id == data["user"]["id"]).values(role="admin")
        )
        await session.commit()
    return {"user": data["user"], "headers": bearer(data["accessToken"])}
