"""
Pytest configuration and fixtures for relay tests.

This module is automatically loaded by pytest and provides:
- TESTING environment flag to disable .env loading
- Shared fixtures for session stores and test clients
"""

import os

# Set TESTING flag BEFORE any app imports
# This prevents loading .env file during tests, ensuring test isolation
os.environ["TESTING"] = "1"

# Set a test encryption key for the database session store
from cryptography.fernet import Fernet
os.environ["TOKEN_ENCRYPTION_KEY"] = Fernet.generate_key().decode()

# OAuth test credentials - explicit values for test isolation
os.environ["JIRA_CLIENT_ID"] = "test-jira-client-id"
os.environ["JIRA_CLIENT_SECRET"] = "test-jira-client-secret"
os.environ["CALLBACK_URL"] = "http://localhost:3000/auth/callback"
os.environ["SESSION_BACKEND"] = "memory"

from contextlib import contextmanager
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from jira_relay.api.deps import get_store
from jira_relay.main import app
from jira_relay.models import SessionData
from jira_relay.services.session_store import DatabaseSessionStore, InMemorySessionStore
from tests.helpers import make_credential


@pytest.fixture(autouse=True)
def reset_refresh_locks():
    """Refresh locks are bound to an event loop; each test gets its own."""
    from jira_relay.services import token_refresh

    token_refresh._refresh_locks.clear()
    yield
    token_refresh._refresh_locks.clear()


@pytest.fixture(name="store")
def store_fixture() -> InMemorySessionStore:
    """A fresh in-memory session store for each test."""
    return InMemorySessionStore()


@pytest.fixture(name="connected_session")
def connected_session_fixture(store: InMemorySessionStore) -> str:
    """Session id of a session holding a valid credential."""
    session_id = "connected-session-id"
    data = SessionData.new(timedelta(hours=24))
    data.credential = make_credential()
    store.set(session_id, data)
    return session_id


@pytest.fixture(name="session")
def session_fixture():
    """Create a new in-memory database session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="db_store")
def db_store_fixture(session: Session) -> DatabaseSessionStore:
    """Database session store bound to the in-memory test database."""

    @contextmanager
    def get_session_override():
        yield session

    return DatabaseSessionStore(get_session=get_session_override)


@pytest.fixture(name="client")
def client_fixture(store: InMemorySessionStore):
    """Create a test client with session store override."""
    app.dependency_overrides[get_store] = lambda: store
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
