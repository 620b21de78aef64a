"""
Test fixtures for the Pocket Ledger test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client with a pre-registered user and JWT
  - second_authenticated_client: A second user, on its own client, for
    cross-user tests
  - account / pocket / fixed_pocket / sub_pocket: ledger parents created
    through the real endpoints for the first user
  - create_movement: factory posting a movement for the first user
  - get_balance: reads the cached balance of an account/pocket/sub-pocket

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database — no state leaks between tests.
  - We override FastAPI's get_db dependency to inject sessions bound to the
    test engine, so the application code works exactly as it does in
    production (including the commits the use cases issue themselves).
  - Users are created via the signup endpoint, not DB inserts.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("LOG_JSON", "false")

from decimal import Decimal  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402

from pocket_ledger.database import Base, get_db  # noqa: E402
from pocket_ledger.main import app  # noqa: E402


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


async def _signup(client: AsyncClient, email: str, password: str) -> str:
    response = await client.post(
        "/auth/signup",
        json={"email": email, "password": password},
    )
    assert response.status_code == 201, f"Signup failed: {response.text}"
    return response.json()["token"]


@pytest_asyncio.fixture
async def authenticated_client(client):
    """
    Test client with a pre-registered user and JWT token.

    Signs up a test user via the real signup endpoint, then sets the
    Authorization header on the client for all subsequent requests.
    """
    token = await _signup(client, "testuser@example.com", "SecurePass123!")
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest_asyncio.fixture
async def second_authenticated_client(client):
    """
    A second user for cross-user isolation tests.

    Uses its own AsyncClient so its Authorization header never clobbers
    the one on authenticated_client.
    """
    token = await _signup(client, "seconduser@example.com", "SecurePass456!")
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Ledger fixtures (first user)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def account(authenticated_client):
    """A USD account named "Main"."""
    response = await authenticated_client.post(
        "/accounts", json={"name": "Main", "currency": "USD"}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def pocket(authenticated_client, account):
    """A normal pocket named "Daily" in the Main account."""
    response = await authenticated_client.post(
        "/pockets", json={"account_id": account["id"], "name": "Daily"}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def fixed_pocket(authenticated_client, account):
    """The user's fixed pocket, named "Bills", in the Main account."""
    response = await authenticated_client.post(
        "/pockets",
        json={"account_id": account["id"], "name": "Bills", "kind": "fixed"},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def sub_pocket(authenticated_client, fixed_pocket):
    """A monthly "Rent" sub-pocket of the fixed pocket."""
    response = await authenticated_client.post(
        "/sub-pockets",
        json={"pocket_id": fixed_pocket["id"], "name": "Rent", "value_total": "1200"},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
def create_movement(authenticated_client):
    """
    Factory fixture: post a movement and return the response JSON.

    Defaults to a 100-unit normal income on 2024-03-15; pass overrides as
    keyword arguments (account_id and pocket_id are required).
    """

    async def _create(expected_status: int = 201, **overrides):
        payload = {
            "type": "normal_income",
            "amount": "100",
            "displayed_date": "2024-03-15",
        }
        payload.update({k: str(v) if k.endswith("_id") else v for k, v in overrides.items()})
        response = await authenticated_client.post("/movements", json=payload)
        assert response.status_code == expected_status, response.text
        return response.json()

    return _create


@pytest_asyncio.fixture
def get_balance(authenticated_client):
    """Read the cached balance of an entity as a Decimal."""

    async def _get(kind: str, entity_id: str) -> Decimal:
        if kind == "account":
            response = await authenticated_client.get(f"/accounts/{entity_id}")
            return Decimal(response.json()["balance"])
        if kind == "pocket":
            response = await authenticated_client.get(f"/pockets/{entity_id}")
            return Decimal(response.json()["balance"])
        response = await authenticated_client.get("/sub-pockets")
        match = next(s for s in response.json() if s["id"] == entity_id)
        return Decimal(match["balance"])

    return _get
