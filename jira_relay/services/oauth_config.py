"""
OAuth configuration for the Atlassian 3LO flow.

Provides the provider endpoints, the CSRF state generator and the
authorization URL builder.
"""

import secrets
from dataclasses import dataclass, field
from urllib.parse import urlencode

from jira_relay.core.config import settings
from jira_relay.core.errors import ProviderNotConfigured


@dataclass
class OAuthProviderConfig:
    """Configuration for the Atlassian OAuth provider."""

    authorize_url: str
    token_url: str
    resources_url: str
    api_url: str
    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: list[str]
    extra_params: dict = field(default_factory=dict)


def get_provider_config() -> OAuthProviderConfig | None:
    """
    Get OAuth configuration for Atlassian.

    Returns:
        OAuthProviderConfig, or None if JIRA_CLIENT_ID/JIRA_CLIENT_SECRET are not set
    """
    if not settings.is_oauth_configured:
        return None

    api_url = settings.ATLASSIAN_API_URL.rstrip("/")

    return OAuthProviderConfig(
        authorize_url=settings.ATLASSIAN_AUTH_URL,
        token_url=settings.ATLASSIAN_TOKEN_URL,
        resources_url=f"{api_url}/oauth/token/accessible-resources",
        api_url=api_url,
        client_id=settings.JIRA_CLIENT_ID,
        client_secret=settings.JIRA_CLIENT_SECRET,
        redirect_uri=settings.CALLBACK_URL,
        scopes=list(settings.JIRA_SCOPES),
        # consent prompt so Atlassian always issues a refresh token
        extra_params={"audience": settings.ATLASSIAN_AUDIENCE, "prompt": "consent"},
    )


def require_provider_config() -> OAuthProviderConfig:
    """
    Like get_provider_config, but fails when the relay is not configured.

    Raises:
        ProviderNotConfigured: If the Atlassian client credentials are missing
    """
    config = get_provider_config()
    if config is None:
        raise ProviderNotConfigured()
    return config


def generate_oauth_state() -> str:
    """
    Generate a cryptographically secure OAuth state parameter.

    Returns:
        URL-safe random string with 32 bytes of entropy
    """
    return secrets.token_urlsafe(32)


def build_authorization_url(config: OAuthProviderConfig, state: str) -> str:
    """
    Build the Atlassian authorization URL for a given state.

    Args:
        config: Provider configuration
        state: CSRF state bound to the caller's session

    Returns:
        Full authorization URL to redirect the browser to
    """
    params = {
        "audience": config.extra_params.get("audience"),
        "client_id": config.client_id,
        "scope": " ".join(config.scopes),
        "redirect_uri": config.redirect_uri,
        "response_type": "code",
    }
    params.update(config.extra_params)
    params["state"] = state

    return f"{config.authorize_url}?{urlencode(params)}"
