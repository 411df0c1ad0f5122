"""
Encryption of session payloads for the database session store.

A SessionData holds the Atlassian access and refresh tokens, so it is only
ever written to the database as a Fernet token of its JSON form.

Usage:
    from jira_relay.core.encryption import get_session_cipher

    blob = get_session_cipher().seal(data)
    data = get_session_cipher().open(blob)
"""

from functools import lru_cache

from cryptography.fernet import Fernet

from jira_relay.core.config import settings
from jira_relay.models import SessionData


class SessionCipher:
    """Seal SessionData into opaque bytes and open them again."""

    def __init__(self, key: str | bytes | None = None):
        key = key or settings.TOKEN_ENCRYPTION_KEY
        if not key:
            raise ValueError("TOKEN_ENCRYPTION_KEY is required for the database session store")
        self._fernet = Fernet(key)

    def seal(self, data: SessionData) -> bytes:
        return self._fernet.encrypt(data.model_dump_json().encode())

    def open(self, blob: bytes) -> SessionData:
        """
        Raises:
            cryptography.fernet.InvalidToken: Corrupted blob or rotated key.
        """
        return SessionData.model_validate_json(self._fernet.decrypt(blob))


@lru_cache(maxsize=1)
def get_session_cipher() -> SessionCipher:
    return SessionCipher()
