"""
Tests for the OAuth routes.

Token exchange and resource discovery are patched where the handshake
imports them; the session store is the in-memory fixture.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

from jira_relay.models import SessionData
from jira_relay.services.oauth_token import OAuthTokenError
from tests.helpers import SESSION_COOKIE, make_response, mock_async_client

TOKEN_RESPONSE = {"access_token": "A", "refresh_token": "R", "expires_in": 3600}
RESOURCES = [{"id": "cloud1", "name": "MySite", "url": "https://mysite.atlassian.net"}]


def _start(client: TestClient) -> str:
    """Hit /auth/jira and return the state from the redirect."""
    response = client.get("/auth/jira", follow_redirects=False)
    assert response.status_code == 302
    return parse_qs(urlparse(response.headers["location"]).query)["state"][0]


def _patched_atlassian(tokens=None, resources=None, exchange_error=None):
    exchange = AsyncMock(return_value=tokens or dict(TOKEN_RESPONSE))
    if exchange_error is not None:
        exchange.side_effect = exchange_error
    discovery = AsyncMock(return_value=RESOURCES if resources is None else resources)
    return (
        patch("jira_relay.services.handshake.exchange_code_for_tokens", new=exchange),
        patch("jira_relay.services.handshake.get_accessible_resources", new=discovery),
    )


class TestStartAuthorization:
    """Tests for GET /auth/jira."""

    def test_redirects_to_atlassian(self, client: TestClient):
        response = client.get("/auth/jira", follow_redirects=False)

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert f"{location.scheme}://{location.netloc}{location.path}" == (
            "https://auth.atlassian.com/authorize"
        )
        params = parse_qs(location.query)
        assert params["client_id"] == ["test-jira-client-id"]
        assert params["prompt"] == ["consent"]

    def test_sets_httponly_session_cookie(self, client: TestClient, store):
        response = client.get("/auth/jira", follow_redirects=False)

        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"{SESSION_COOKIE}=")
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()

        session_id = response.cookies[SESSION_COOKIE]
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
        assert store.get(session_id).oauth_state == state

    def test_reuses_existing_session(self, client: TestClient, store):
        client.cookies.set(SESSION_COOKIE, "existing-sid")

        _start(client)

        assert store.get("existing-sid") is not None

    def test_not_configured(self, client: TestClient, monkeypatch):
        from jira_relay.core.config import settings

        monkeypatch.setattr(settings, "JIRA_CLIENT_SECRET", None)

        response = client.get("/auth/jira", follow_redirects=False)

        assert response.status_code == 503
        assert response.json()["code"] == "PROVIDER_NOT_CONFIGURED"
        assert "JIRA_CLIENT_ID" in response.json()["error"]


class TestOAuthCallback:
    """Tests for GET /auth/callback."""

    def test_success_connects_session(self, client: TestClient):
        state = _start(client)
        exchange_patch, discovery_patch = _patched_atlassian()

        with exchange_patch as exchange, discovery_patch:
            response = client.get("/auth/callback", params={"code": "abc", "state": state})

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Authorization Successful" in response.text
        assert "MySite" in response.text
        assert exchange.call_args.args[1] == "abc"

        status_response = client.get("/auth/status")
        assert status_response.json() == {
            "connected": True,
            "site": "MySite",
            "siteUrl": "https://mysite.atlassian.net",
        }

    def test_state_mismatch_renders_error_page(self, client: TestClient):
        _start(client)
        exchange_patch, discovery_patch = _patched_atlassian()

        with exchange_patch as exchange, discovery_patch:
            response = client.get("/auth/callback", params={"code": "abc", "state": "forged"})

        assert response.status_code == 400
        assert "Authorization Failed" in response.text
        assert "Invalid state parameter" in response.text
        exchange.assert_not_called()

    def test_missing_state(self, client: TestClient):
        _start(client)

        response = client.get("/auth/callback", params={"code": "abc"})

        assert response.status_code == 400

    def test_replayed_callback_is_rejected(self, client: TestClient):
        state = _start(client)
        exchange_patch, discovery_patch = _patched_atlassian()

        with exchange_patch, discovery_patch:
            first = client.get("/auth/callback", params={"code": "abc", "state": state})
            second = client.get("/auth/callback", params={"code": "abc", "state": state})

        assert first.status_code == 200
        assert second.status_code == 400

    def test_missing_code(self, client: TestClient):
        state = _start(client)

        response = client.get("/auth/callback", params={"state": state})

        assert response.status_code == 400
        assert "No code received" in response.text

    def test_provider_error(self, client: TestClient, store):
        """User denied consent: error page, state consumed."""
        state = _start(client)

        response = client.get(
            "/auth/callback",
            params={
                "error": "access_denied",
                "error_description": "User denied",
                "state": state,
            },
        )

        assert response.status_code == 400
        assert "access_denied" in response.text
        session_id = client.cookies.get(SESSION_COOKIE)
        assert store.get(session_id).oauth_state is None

    def test_no_accessible_resources(self, client: TestClient):
        state = _start(client)
        exchange_patch, discovery_patch = _patched_atlassian(resources=[])

        with exchange_patch, discovery_patch:
            response = client.get("/auth/callback", params={"code": "abc", "state": state})

        assert response.status_code == 502
        assert "No accessible Jira sites found" in response.text
        assert client.get("/auth/status").json() == {"connected": False}

    def test_exchange_failure(self, client: TestClient):
        state = _start(client)
        exchange_patch, discovery_patch = _patched_atlassian(
            exchange_error=OAuthTokenError("invalid_grant", "Invalid authorization code")
        )

        with exchange_patch, discovery_patch as discovery:
            response = client.get("/auth/callback", params={"code": "abc", "state": state})

        assert response.status_code == 502
        assert "Authorization with Atlassian failed" in response.text
        discovery.assert_not_called()

    def test_not_configured_renders_error_page(self, client: TestClient, monkeypatch):
        from jira_relay.core.config import settings

        state = _start(client)
        monkeypatch.setattr(settings, "JIRA_CLIENT_ID", None)

        response = client.get("/auth/callback", params={"code": "abc", "state": state})

        assert response.status_code == 503
        assert "Authorization Failed" in response.text
        assert "not configured" in response.text

    def test_non_json_token_response(self, client: TestClient):
        """A token endpoint answering 200 with HTML fails as an upstream error."""
        state = _start(client)
        token_response = make_response(200, text="<html>maintenance</html>")
        token_response.json.side_effect = ValueError("Expecting value")

        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, post=token_response)
            response = client.get("/auth/callback", params={"code": "abc", "state": state})

        assert response.status_code == 502
        assert "Authorization with Atlassian failed" in response.text
        assert client.get("/auth/status").json() == {"connected": False}

    def test_error_page_escapes_provider_text(self, client: TestClient):
        state = _start(client)

        response = client.get(
            "/auth/callback",
            params={"error": "<script>alert(1)</script>", "state": state},
        )

        assert "<script>alert(1)</script>" not in response.text
        assert "&lt;script&gt;" in response.text


class TestStatus:
    """Tests for GET /auth/status."""

    def test_no_cookie(self, client: TestClient):
        response = client.get("/auth/status")

        assert response.status_code == 200
        assert response.json() == {"connected": False}

    def test_pending_handshake_is_not_connected(self, client: TestClient):
        _start(client)

        assert client.get("/auth/status").json() == {"connected": False}

    def test_connected(self, client: TestClient, connected_session):
        client.cookies.set(SESSION_COOKIE, connected_session)

        body = client.get("/auth/status").json()

        assert body == {
            "connected": True,
            "site": "MySite",
            "siteUrl": "https://mysite.atlassian.net",
        }
        assert "access_token" not in body


class TestDisconnect:
    """Tests for POST /auth/disconnect."""

    def test_destroys_session(self, client: TestClient, store, connected_session):
        client.cookies.set(SESSION_COOKIE, connected_session)

        response = client.post("/auth/disconnect")

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert store.get(connected_session) is None

    def test_status_after_disconnect(self, client: TestClient, connected_session):
        client.cookies.set(SESSION_COOKIE, connected_session)

        client.post("/auth/disconnect")
        client.cookies.set(SESSION_COOKIE, connected_session)

        assert client.get("/auth/status").json() == {"connected": False}

    def test_without_session(self, client: TestClient):
        response = client.post("/auth/disconnect")

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_pending_handshake_is_abandoned(self, client: TestClient, store):
        data = SessionData.new(timedelta(hours=24))
        data.oauth_state = "s1"
        store.set("sid-1", data)
        client.cookies.set(SESSION_COOKIE, "sid-1")

        client.post("/auth/disconnect")

        assert store.get("sid-1") is None
