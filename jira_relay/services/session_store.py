"""
Session store implementations and factory.

Two storage modes are supported:
1. In-memory (single instance, local development and tests)
2. Database (sessions persisted through SQLModel, payload encrypted)

Usage:
    from jira_relay.services.session_store import get_session_store

    store = get_session_store()
    data = store.get(session_id)
"""

import logging
import secrets
import threading
from contextlib import AbstractContextManager
from datetime import timedelta
from functools import lru_cache
from typing import Callable

from cryptography.fernet import InvalidToken
from sqlmodel import Session

from jira_relay.core.config import settings
from jira_relay.crud.session import (
    cleanup_expired_sessions_db,
    delete_session_db,
    get_session_db,
    save_session_db,
)
from jira_relay.models import SessionData
from jira_relay.services.protocols import SessionStoreProtocol

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """
    Generate a new opaque session id.

    Returns:
        URL-safe random string with 32 bytes of entropy
    """
    return secrets.token_urlsafe(32)


def session_ttl() -> timedelta:
    """Lifetime of a newly created session."""
    return timedelta(hours=settings.SESSION_TTL_HOURS)


class InMemorySessionStore:
    """
    Dict-backed session store.

    LIMITATION: sessions live in this process only. Use the database
    backend when several relay instances serve the same users.
    """

    def __init__(self):
        self._sessions: dict[str, SessionData] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> SessionData | None:
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return None
            if data.is_expired():
                del self._sessions[session_id]
                return None
            # Hand out a copy so callers only change the store through set()
            return data.model_copy(deep=True)

    def set(self, session_id: str, data: SessionData) -> None:
        with self._lock:
            self._sessions[session_id] = data.model_copy(deep=True)

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def cleanup_expired(self) -> int:
        with self._lock:
            expired = [sid for sid, data in self._sessions.items() if data.is_expired()]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


class DatabaseSessionStore:
    """
    Session store backed by the relay_sessions table.

    Args:
        get_session: Callable returning a database session context manager.
            Defaults to jira_relay.core.db.get_session.
    """

    def __init__(
        self,
        get_session: Callable[[], AbstractContextManager[Session]] | None = None,
    ):
        if get_session is None:
            from jira_relay.core.db import get_session, init_db

            init_db()
        self._get_session = get_session

    def get(self, session_id: str) -> SessionData | None:
        with self._get_session() as session:
            try:
                return get_session_db(session=session, session_id=session_id)
            except InvalidToken:
                logger.error(
                    "Failed to decrypt session %s (encryption key mismatch), discarding it",
                    session_id[:8],
                )
                delete_session_db(session=session, session_id=session_id)
                return None

    def set(self, session_id: str, data: SessionData) -> None:
        with self._get_session() as session:
            save_session_db(session=session, session_id=session_id, data=data)

    def destroy(self, session_id: str) -> bool:
        with self._get_session() as session:
            return delete_session_db(session=session, session_id=session_id)

    def cleanup_expired(self) -> int:
        with self._get_session() as session:
            return cleanup_expired_sessions_db(session=session)


@lru_cache(maxsize=1)
def get_session_store() -> SessionStoreProtocol:
    """
    Factory returning the process-wide session store.

    Selects the backend from SESSION_BACKEND:
    - "memory": InMemorySessionStore
    - "database": DatabaseSessionStore on DATABASE_URL

    Returns:
        A store implementing SessionStoreProtocol
    """
    if settings.SESSION_BACKEND == "database":
        logger.info("Using database session store")
        return DatabaseSessionStore()

    if settings.ENVIRONMENT in ("production", "staging"):
        logger.warning(
            "In-memory session store in %s: sessions are lost on restart "
            "and not shared between instances",
            settings.ENVIRONMENT,
        )
    else:
        logger.info("Using in-memory session store")
    return InMemorySessionStore()
