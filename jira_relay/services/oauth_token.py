"""
OAuth token exchange, refresh and resource discovery.

Handles exchanging authorization codes for tokens, refreshing expired tokens
and listing the Atlassian sites a token can reach.
"""

import httpx

from jira_relay.core.config import settings
from jira_relay.services.oauth_config import OAuthProviderConfig

DEFAULT_EXPIRES_IN_SECONDS = 3600


class OAuthTokenError(Exception):
    """Error during OAuth token exchange, refresh or discovery."""

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        super().__init__(f"{error}: {description}" if description else error)


def _error_from_response(response: httpx.Response) -> OAuthTokenError:
    try:
        result = response.json()
    except ValueError:
        return OAuthTokenError(f"http_{response.status_code}", response.text or None)

    if not isinstance(result, dict):
        return OAuthTokenError(f"http_{response.status_code}")

    error = result.get("error", f"http_{response.status_code}")
    description = result.get("error_description") or result.get("message")
    return OAuthTokenError(error, description)


async def _post_token_request(token_url: str, data: dict) -> dict:
    """
    Make a POST request to the Atlassian token endpoint.

    Atlassian accepts a JSON body on its token endpoint.

    Args:
        token_url: The token endpoint URL
        data: JSON body to send with the request

    Returns:
        Parsed JSON response from the token endpoint

    Raises:
        OAuthTokenError: If the token request fails or the endpoint is unreachable
    """
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                token_url,
                json=data,
                headers={"Content-Type": "application/json"},
            )
    except httpx.HTTPError as e:
        raise OAuthTokenError("network_error", str(e)) from e

    if response.status_code != 200:
        raise _error_from_response(response)

    return _json_body(response)


def _json_body(response: httpx.Response):
    try:
        return response.json()
    except ValueError as e:
        raise OAuthTokenError("invalid_response", "Response body is not JSON") from e


def _parse_token_response(result) -> dict:
    if not isinstance(result, dict):
        raise OAuthTokenError("invalid_response", "Token response is not a JSON object")
    if not result.get("access_token"):
        raise OAuthTokenError("invalid_response", "No access_token in token response")

    expires_in = result.get("expires_in")
    if expires_in is None:
        expires_in = DEFAULT_EXPIRES_IN_SECONDS
    try:
        expires_in = int(expires_in)
    except (TypeError, ValueError) as e:
        raise OAuthTokenError("invalid_response", f"Invalid expires_in: {expires_in!r}") from e

    return {
        "access_token": result["access_token"],
        "refresh_token": result.get("refresh_token"),
        "expires_in": expires_in,
        "token_type": result.get("token_type", "Bearer"),
        "scope": result.get("scope"),
    }


async def exchange_code_for_tokens(config: OAuthProviderConfig, code: str) -> dict:
    """
    Exchange an authorization code for access and refresh tokens.

    Args:
        config: Provider configuration
        code: Authorization code from the OAuth callback

    Returns:
        Dictionary with access_token, refresh_token, expires_in, etc.

    Raises:
        OAuthTokenError: If token exchange fails
    """
    data = {
        "grant_type": "authorization_code",
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "code": code,
        "redirect_uri": config.redirect_uri,
    }

    result = await _post_token_request(config.token_url, data)
    return _parse_token_response(result)


async def refresh_access_token(config: OAuthProviderConfig, refresh_token: str) -> dict:
    """
    Mint a new access token with a refresh token.

    Atlassian refresh tokens rotate: the response carries a new refresh token
    and the one sent here stops working. A response without one is treated
    as a failure rather than falling back to the consumed token.

    Args:
        config: Provider configuration
        refresh_token: The current refresh token

    Returns:
        Dictionary with new access_token, refresh_token and expires_in

    Raises:
        OAuthTokenError: If token refresh fails
    """
    data = {
        "grant_type": "refresh_token",
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "refresh_token": refresh_token,
    }

    result = await _post_token_request(config.token_url, data)
    tokens = _parse_token_response(result)

    if not tokens["refresh_token"]:
        raise OAuthTokenError("invalid_response", "No rotated refresh_token in refresh response")

    return tokens


async def get_accessible_resources(config: OAuthProviderConfig, access_token: str) -> list[dict]:
    """
    List the Atlassian sites the access token is authorized for.

    Args:
        config: Provider configuration
        access_token: Freshly issued access token

    Returns:
        List of resources, each with at least id, name and url

    Raises:
        OAuthTokenError: If the discovery call fails
    """
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(
                config.resources_url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
    except httpx.HTTPError as e:
        raise OAuthTokenError("network_error", str(e)) from e

    if response.status_code != 200:
        raise _error_from_response(response)

    resources = _json_body(response)
    if not isinstance(resources, list):
        raise OAuthTokenError("invalid_response", "Accessible resources is not a list")
    return resources
