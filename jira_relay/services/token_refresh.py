"""
Token refresh for session credentials.

A credential is in one of two states:

- VALID: now < token_expiry, used as is.
- EXPIRED: now >= token_expiry, refreshed exactly once before use.

A successful refresh replaces access token, refresh token and expiry and
returns the credential to VALID. A failed refresh destroys the whole session
and raises TokenRefreshFailed; the user has to go through the handshake
again. The check runs before every Jira call, never on a timer.

Refreshes are serialized per session id within this process. A request that
waited for the lock re-reads the session and finds the rotated token, so a
consumed refresh token is never sent twice.
"""

import asyncio
import enum
import logging
from datetime import datetime, timedelta, timezone

from jira_relay.core.errors import NotAuthenticated, TokenRefreshFailed
from jira_relay.models import SessionCredential
from jira_relay.services.oauth_config import OAuthProviderConfig, require_provider_config
from jira_relay.services.oauth_token import OAuthTokenError, refresh_access_token
from jira_relay.services.protocols import SessionStoreProtocol

logger = logging.getLogger(__name__)


class TokenState(enum.Enum):
    VALID = "valid"
    EXPIRED = "expired"


def token_state(credential: SessionCredential, now: datetime | None = None) -> TokenState:
    """Classify a credential at the given instant."""
    if credential.is_expired(now):
        return TokenState.EXPIRED
    return TokenState.VALID


_refresh_locks: dict[str, asyncio.Lock] = {}


def _get_refresh_lock(session_id: str) -> asyncio.Lock:
    lock = _refresh_locks.get(session_id)
    if lock is None:
        lock = _refresh_locks[session_id] = asyncio.Lock()
    return lock


def forget_refresh_lock(session_id: str) -> None:
    """Drop the refresh lock of a destroyed session."""
    _refresh_locks.pop(session_id, None)


def prune_refresh_locks() -> int:
    """
    Drop refresh locks nobody holds.

    Returns:
        Number of locks dropped
    """
    idle = [sid for sid, lock in _refresh_locks.items() if not lock.locked()]
    for sid in idle:
        del _refresh_locks[sid]
    return len(idle)


def _load_credential(store: SessionStoreProtocol, session_id: str | None) -> SessionCredential:
    data = store.get(session_id) if session_id else None
    if data is None or data.credential is None:
        raise NotAuthenticated()
    return data.credential


async def refresh_session_token(
    *,
    store: SessionStoreProtocol,
    session_id: str,
    config: OAuthProviderConfig | None = None,
    now: datetime | None = None,
) -> SessionCredential:
    """
    Perform the EXPIRED -> VALID transition for a session.

    Exactly one call to the token endpoint. No retry.

    Args:
        store: Session store
        session_id: Session whose credential is refreshed
        config: Provider configuration (defaults to settings)
        now: Current time, for computing the new token_expiry

    Returns:
        The refreshed credential, already written to the store

    Raises:
        NotAuthenticated: No credential in the session
        TokenRefreshFailed: Refresh rejected or unreachable; session destroyed
    """
    data = store.get(session_id)
    if data is None or data.credential is None:
        raise NotAuthenticated()

    if config is None:
        config = require_provider_config()

    logger.info("Access token expired for session %s, refreshing", session_id[:8])
    try:
        tokens = await refresh_access_token(config, data.credential.refresh_token)
    except OAuthTokenError as e:
        logger.error("Token refresh failed for session %s: %s", session_id[:8], e)
        store.destroy(session_id)
        forget_refresh_lock(session_id)
        raise TokenRefreshFailed(
            details={"error": e.error, "description": e.description}
        ) from e

    if now is None:
        now = datetime.now(timezone.utc)

    credential = data.credential.with_tokens(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
        token_expiry=now + timedelta(seconds=tokens["expires_in"]),
    )
    # Re-read: a disconnect during the refresh must not be undone
    current = store.get(session_id)
    if current is None:
        logger.info("Session %s ended during token refresh, discarding tokens", session_id[:8])
        raise NotAuthenticated()
    current.credential = credential
    store.set(session_id, current)

    logger.info("Token refreshed for session %s", session_id[:8])
    return credential


async def ensure_fresh_token(
    *,
    store: SessionStoreProtocol,
    session_id: str | None,
    config: OAuthProviderConfig | None = None,
    now: datetime | None = None,
) -> SessionCredential:
    """
    Return a VALID credential for the session, refreshing it if EXPIRED.

    Args:
        store: Session store
        session_id: Caller's session id
        config: Provider configuration (defaults to settings)
        now: Current time (defaults to the wall clock)

    Returns:
        Credential whose access token can be used right now

    Raises:
        NotAuthenticated: No credential in the session
        TokenRefreshFailed: Refresh failed; session destroyed
    """
    credential = _load_credential(store, session_id)
    if token_state(credential, now) is TokenState.VALID:
        return credential

    async with _get_refresh_lock(session_id):
        # Another request may have refreshed (or lost) the session meanwhile
        credential = _load_credential(store, session_id)
        if token_state(credential, now) is TokenState.VALID:
            return credential

        return await refresh_session_token(
            store=store,
            session_id=session_id,
            config=config,
            now=now,
        )
