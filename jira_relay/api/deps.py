from typing import Annotated

from fastapi import Depends, Request

from jira_relay.core.config import settings
from jira_relay.services.protocols import SessionStoreProtocol
from jira_relay.services.session_store import get_session_store


def get_store() -> SessionStoreProtocol:
    return get_session_store()


def get_session_id(request: Request) -> str | None:
    """Session id from the relay cookie, or None for a new visitor."""
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


StoreDep = Annotated[SessionStoreProtocol, Depends(get_store)]
SessionIdDep = Annotated[str | None, Depends(get_session_id)]
