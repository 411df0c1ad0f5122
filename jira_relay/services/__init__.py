"""
Services package: the OAuth handshake, token refresh and the Jira gateway.

Usage:
    from jira_relay.services import handshake, gateway
    from jira_relay.services.session_store import get_session_store
    from jira_relay.services.protocols import SessionStoreProtocol
"""

from .protocols import SessionStoreProtocol
from .session_store import (
    DatabaseSessionStore,
    InMemorySessionStore,
    generate_session_id,
    get_session_store,
)

__all__ = [
    # Protocols
    "SessionStoreProtocol",
    # Session store
    "DatabaseSessionStore",
    "InMemorySessionStore",
    "generate_session_id",
    "get_session_store",
]
