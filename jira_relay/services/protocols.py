"""
Protocol definitions for pluggable relay components.

This module defines Protocol classes (PEP 544) so that the handshake and the
gateway depend on a capability rather than a concrete backend, and tests can
substitute simple fakes.
"""

from typing import Protocol, runtime_checkable

from jira_relay.models import SessionData


@runtime_checkable
class SessionStoreProtocol(Protocol):
    """
    Key-value store of relay sessions, keyed by session id.

    Both InMemorySessionStore and DatabaseSessionStore implement this
    protocol. Implementations are expected to serialize access per key.

    Example:
        def get_session_store() -> SessionStoreProtocol:
            if settings.SESSION_BACKEND == "database":
                return DatabaseSessionStore()
            return InMemorySessionStore()
    """

    def get(self, session_id: str) -> SessionData | None:
        """
        Load a session.

        Returns:
            The stored SessionData, or None if unknown or expired
        """
        ...

    def set(self, session_id: str, data: SessionData) -> None:
        """Create or replace the session stored under session_id."""
        ...

    def destroy(self, session_id: str) -> bool:
        """
        Forget a session.

        Returns:
            True if a session was removed, False if none existed
        """
        ...

    def cleanup_expired(self) -> int:
        """
        Remove every expired session.

        Returns:
            Number of sessions removed
        """
        ...
