# backend/tests/conftest.py
import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from feedback_dashboard.config import Settings
from feedback_dashboard.dashboard.client import FeedbackApiClient
from feedback_dashboard.database.connection import FeedbackStore
from feedback_dashboard.main import create_app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_store() -> FeedbackStore:
    """In-memory SQLite store; StaticPool keeps the single connection alive."""
    return FeedbackStore(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def app(store):
    return create_app(store=store, settings=Settings(database_url=TEST_DATABASE_URL))


@pytest.fixture(scope="function")
def client(app):
    """
    Test client for the whole app. Entering the client runs the lifespan,
    which provisions the in-memory store.
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def unprovisioned_client(app):
    """Client whose lifespan never ran: the store is not provisioned."""
    return TestClient(app)


@pytest_asyncio.fixture
async def ready_store():
    store = make_store()
    await store.provision()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def api_client(ready_store):
    """Dashboard API client talking to the app in-process."""
    app = create_app(store=ready_store, settings=Settings(database_url=TEST_DATABASE_URL))
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        yield FeedbackApiClient(http)
