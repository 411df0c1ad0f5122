"""Shared builders for relay tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from jira_relay.models import SessionCredential

SESSION_COOKIE = "jira_relay_sid"


def make_response(status_code: int = 200, json_data=None, text: str = "") -> MagicMock:
    """Build a stand-in for an httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.text = text
    return response


def mock_async_client(mock_client, *, get=None, post=None) -> AsyncMock:
    """
    Wire a patched httpx.AsyncClient so `async with` yields an instance
    whose get/post return the given response (or responses, in order).
    """
    mock_instance = AsyncMock()
    for name, value in (("get", get), ("post", post)):
        if value is None:
            continue
        method = getattr(mock_instance, name)
        if isinstance(value, list):
            method.side_effect = value
        else:
            method.return_value = value
    mock_instance.__aenter__.return_value = mock_instance
    mock_instance.__aexit__.return_value = None
    mock_client.return_value = mock_instance
    return mock_instance


def make_credential(**overrides) -> SessionCredential:
    values = {
        "access_token": "A",
        "refresh_token": "R",
        "token_expiry": datetime.now(timezone.utc) + timedelta(hours=1),
        "tenant_id": "cloud1",
        "site_name": "MySite",
        "site_url": "https://mysite.atlassian.net",
    }
    values.update(overrides)
    return SessionCredential(**values)
