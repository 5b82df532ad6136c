"""Pytest configuration and fixtures."""

import os

# Settings are cached on first use: pin them before the package is imported
os.environ["DATABASE_URL"] = ""
os.environ["GATEWAY_URL"] = ""
os.environ["ENV_MODE"] = "development"

from typing import AsyncIterator, Generator

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gustoflow.database import get_db, init_db
from gustoflow.db import DataGateway
from gustoflow.main import app
from gustoflow.schemas import StaffMember, UserRole
from gustoflow.services.preferences import PreferenceStore
from gustoflow.services.store import LocalStore, RemoteStore

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"
GATEWAY_URL = "http://testserver/api"


def make_engine() -> AsyncEngine:
    return create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """
    Test client with a fresh in-memory database.

    The engine is created lazily inside the app's event loop, since aiosqlite
    connections cannot cross loops.
    """
    state = {}

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        if "maker" not in state:
            engine = make_engine()
            await init_db(engine)
            state["maker"] = async_sessionmaker(engine, expire_on_commit=False)
        async with state["maker"]() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def unbound_client() -> Generator[TestClient, None, None]:
    """Test client whose gateway has no database binding."""

    async def no_db():
        yield None

    app.dependency_overrides[get_db] = no_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = make_engine()
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def remote_store(db_engine: AsyncEngine) -> AsyncIterator[RemoteStore]:
    """RemoteStore talking to the real app in-process over ASGI."""
    maker = async_sessionmaker(db_engine, expire_on_commit=False)

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield RemoteStore(GATEWAY_URL, transport=httpx.ASGITransport(app=app))
    app.dependency_overrides.clear()


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path / "fallback")


@pytest.fixture
def local_gateway(local_store: LocalStore) -> DataGateway:
    """Gateway running on the fallback store only."""
    return DataGateway(None, local_store)


@pytest.fixture
def preferences(tmp_path) -> PreferenceStore:
    return PreferenceStore(tmp_path / "preferences")


@pytest.fixture
def waitress() -> StaffMember:
    return StaffMember(id="4", username="waitress", role=UserRole.WAITRESS, name="Elena Waitress")


def unreachable_transport() -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    return httpx.MockTransport(handler)


def failing_transport(status_code: int = 500, body: str = "boom") -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(status_code, text=body))
