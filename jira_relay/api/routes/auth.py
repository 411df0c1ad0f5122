"""
OAuth routes connecting a browser session to Jira.

Provides endpoints for:
- Starting the Atlassian authorization redirect
- Handling the OAuth callback
- Reporting connection status
- Disconnecting
"""

import logging
from html import escape

from fastapi import APIRouter, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse

from jira_relay.api.deps import SessionIdDep, StoreDep
from jira_relay.core.config import settings
from jira_relay.core.errors import RelayError
from jira_relay.models import DisconnectResponse, SessionStatus
from jira_relay.services import handshake
from jira_relay.services.session_store import generate_session_id
from jira_relay.services.token_refresh import forget_refresh_lock

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Seconds the success page waits before returning to the app
REDIRECT_DELAY_SECONDS = 2


def _set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=settings.SESSION_TTL_HOURS * 3600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        # lax so the cookie comes back on Atlassian's top-level redirect
        samesite="lax",
    )


def _success_page(site_name: str) -> str:
    return f"""<html>
  <head>
    <title>Authorization Successful</title>
    <meta http-equiv="refresh" content="{REDIRECT_DELAY_SECONDS};url=/">
  </head>
  <body>
    <h2>Authorization Successful!</h2>
    <p>Connected to: {escape(site_name)}</p>
    <p>Redirecting back to app...</p>
    <script>
      setTimeout(() => {{ window.location.href = '/'; }}, {REDIRECT_DELAY_SECONDS * 1000});
    </script>
  </body>
</html>"""


def _error_page(message: str) -> str:
    return f"""<html>
  <head>
    <title>Authorization Failed</title>
  </head>
  <body>
    <h2>Authorization Failed</h2>
    <p>{escape(message)}</p>
    <a href="/">Go back to app</a>
  </body>
</html>"""


@router.get("/jira")
async def start_authorization(store: StoreDep, session_id: SessionIdDep) -> RedirectResponse:
    """
    Start the OAuth flow.

    Issues a session cookie if the browser has none, binds a fresh state
    to the session and redirects to the Atlassian consent page.
    """
    if session_id is None:
        session_id = generate_session_id()

    # ProviderNotConfigured propagates to the RelayError handler
    authorization_url = handshake.initiate(store=store, session_id=session_id)

    response = RedirectResponse(url=authorization_url, status_code=status.HTTP_302_FOUND)
    _set_session_cookie(response, session_id)
    return response


@router.get("/callback", response_class=HTMLResponse)
async def oauth_callback(
    store: StoreDep,
    session_id: SessionIdDep,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
) -> HTMLResponse:
    """
    Handle the redirect back from Atlassian.

    The state check runs before anything else, including provider-reported
    errors, so a forged callback cannot consume or probe a session.
    """
    try:
        if error:
            # User denied consent or Atlassian refused; the state is still spent
            handshake.consume_state(store=store, session_id=session_id, state=state)
            logger.warning("Atlassian returned an OAuth error: %s", error)
            return HTMLResponse(
                _error_page(f"Atlassian returned an error: {error}. {error_description or ''}"),
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        credential = await handshake.complete(
            store=store,
            session_id=session_id,
            code=code,
            state=state,
        )
    except RelayError as e:
        return HTMLResponse(_error_page(e.message), status_code=e.status_code)

    return HTMLResponse(_success_page(credential.site_name))


@router.get("/status", response_model=SessionStatus, response_model_exclude_none=True)
async def get_status(store: StoreDep, session_id: SessionIdDep) -> SessionStatus:
    """Report whether this session is connected to a Jira site."""
    data = store.get(session_id) if session_id else None
    if data is None or data.credential is None:
        return SessionStatus(connected=False)

    return SessionStatus(
        connected=True,
        site=data.credential.site_name,
        siteUrl=data.credential.site_url,
    )


@router.post("/disconnect", response_model=DisconnectResponse)
async def disconnect(
    store: StoreDep,
    session_id: SessionIdDep,
    response: Response,
) -> DisconnectResponse:
    """Destroy the session, including its credential, and clear the cookie."""
    if session_id:
        store.destroy(session_id)
        forget_refresh_lock(session_id)
        logger.info("Session %s disconnected", session_id[:8])

    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return DisconnectResponse(success=True)
