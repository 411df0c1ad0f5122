"""
CRUD operations module.
"""

from jira_relay.crud.session import (
    cleanup_expired_sessions_db,
    delete_session_db,
    get_session_db,
    save_session_db,
)

__all__ = [
    "cleanup_expired_sessions_db",
    "delete_session_db",
    "get_session_db",
    "save_session_db",
]
