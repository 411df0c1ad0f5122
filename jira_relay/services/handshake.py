"""
Authorization handshake for Atlassian OAuth 2.0 (3LO).

Two steps, both keyed by the caller's session id:

- initiate(): bind a fresh CSRF state to the session and build the
  authorization URL.
- complete(): check and consume the state, exchange the code, discover the
  Jira site and store the resulting SessionCredential.

A credential is only ever written after both the exchange and the discovery
succeeded.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

from jira_relay.core.errors import (
    CsrfMismatch,
    MissingAuthorizationCode,
    NoAccessibleResources,
    NotAuthenticated,
    UpstreamError,
)
from jira_relay.models import SessionCredential, SessionData
from jira_relay.services.oauth_config import (
    OAuthProviderConfig,
    build_authorization_url,
    generate_oauth_state,
    require_provider_config,
)
from jira_relay.services.oauth_token import (
    OAuthTokenError,
    exchange_code_for_tokens,
    get_accessible_resources,
)
from jira_relay.services.protocols import SessionStoreProtocol
from jira_relay.services.session_store import session_ttl

logger = logging.getLogger(__name__)

ResourceSelector = Callable[[list[dict]], dict]


def select_first_resource(resources: list[dict]) -> dict:
    """
    Pick the Jira site a session is connected to.

    Takes the first accessible resource, with no ranking. Users with access
    to several sites always land on whichever Atlassian lists first.

    Raises:
        NoAccessibleResources: If the list is empty
    """
    if not resources:
        raise NoAccessibleResources()
    return resources[0]


def initiate(
    *,
    store: SessionStoreProtocol,
    session_id: str,
    config: OAuthProviderConfig | None = None,
) -> str:
    """
    Start a handshake for a session.

    Overwrites any pending state of the session, so only the most recent
    handshake can complete. An existing credential is kept until a new one
    replaces it.

    Args:
        store: Session store
        session_id: Caller's session id
        config: Provider configuration (defaults to settings)

    Returns:
        Authorization URL to redirect the browser to
    """
    if config is None:
        config = require_provider_config()

    data = store.get(session_id) or SessionData.new(session_ttl())
    state = generate_oauth_state()
    data.oauth_state = state
    store.set(session_id, data)

    logger.info("Starting Atlassian authorization for session %s", session_id[:8])
    return build_authorization_url(config, state)


def consume_state(
    *,
    store: SessionStoreProtocol,
    session_id: str | None,
    state: str | None,
) -> None:
    """
    Check a callback state against the session's pending state.

    The pending state is deleted whatever the outcome, so each state can
    be presented at most once.

    Raises:
        CsrfMismatch: State absent, nothing pending, or the values differ
    """
    data = store.get(session_id) if session_id else None
    pending_state = data.oauth_state if data else None

    if pending_state is not None:
        data.oauth_state = None
        store.set(session_id, data)

    if not state or pending_state is None or not secrets.compare_digest(
        state.encode(), pending_state.encode()
    ):
        logger.warning("Rejected OAuth callback with invalid state")
        raise CsrfMismatch()


async def complete(
    *,
    store: SessionStoreProtocol,
    session_id: str | None,
    code: str | None,
    state: str | None,
    config: OAuthProviderConfig | None = None,
    select_resource: ResourceSelector = select_first_resource,
    now: datetime | None = None,
) -> SessionCredential:
    """
    Finish a handshake from the OAuth callback.

    Args:
        store: Session store
        session_id: Caller's session id; None or an unknown id has no pending state
        code: Authorization code from the callback query
        state: State from the callback query
        config: Provider configuration (defaults to settings)
        select_resource: Policy choosing one of the accessible resources
        now: Current time, for computing token_expiry

    Returns:
        The stored SessionCredential

    Raises:
        CsrfMismatch: State absent or not the pending one (no network call made)
        MissingAuthorizationCode: Code absent
        UpstreamError: Token exchange or discovery failed
        NoAccessibleResources: Token reaches no Jira site
        NotAuthenticated: Session destroyed while the exchange was in flight
    """
    consume_state(store=store, session_id=session_id, state=state)

    if not code:
        logger.warning("OAuth callback without authorization code")
        raise MissingAuthorizationCode()

    if config is None:
        config = require_provider_config()

    try:
        logger.info("Exchanging authorization code for access token")
        tokens = await exchange_code_for_tokens(config, code)
        if now is None:
            now = datetime.now(timezone.utc)

        logger.info("Fetching accessible Jira resources")
        resources = await get_accessible_resources(config, tokens["access_token"])
    except OAuthTokenError as e:
        logger.error("OAuth callback failed: %s", e)
        raise UpstreamError(
            "Authorization with Atlassian failed",
            details={"error": e.error, "description": e.description},
        ) from e

    if not tokens.get("refresh_token"):
        # Without offline_access there is nothing to refresh with later
        raise UpstreamError(
            "Authorization with Atlassian failed",
            details={"error": "invalid_response", "description": "No refresh_token issued"},
        )

    resource = select_resource(resources)

    credential = SessionCredential(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
        token_expiry=now + timedelta(seconds=tokens["expires_in"]),
        tenant_id=resource["id"],
        site_name=resource.get("name", ""),
        site_url=resource.get("url", "").rstrip("/"),
    )

    # Re-read: the session may have been replaced by a concurrent initiate()
    # or destroyed by a disconnect while we were waiting on Atlassian
    data = store.get(session_id)
    if data is None:
        logger.warning("Session %s ended during authorization, discarding tokens", session_id[:8])
        raise NotAuthenticated("Session ended before authorization completed")
    data.credential = credential
    store.set(session_id, data)

    logger.info(
        "Connected session %s to Jira site %s (%s)",
        session_id[:8],
        credential.site_name,
        credential.tenant_id,
    )
    return credential
