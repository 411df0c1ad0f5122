"""
Error taxonomy for the relay.

Every failure a request can end in is a RelayError subclass. Each carries a
stable code, an HTTP status and optional upstream detail, and is rendered as
a structured JSON payload by the exception handler in ``jira_relay.main``.
None of them are retried.
"""

from typing import Any


class RelayError(Exception):
    """Base class for errors reported to the caller."""

    code = "RELAY_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class CsrfMismatch(RelayError):
    """OAuth callback state is missing or does not match the pending state."""

    code = "CSRF_MISMATCH"
    status_code = 400

    def __init__(self, message: str = "Invalid state parameter. Possible CSRF attack."):
        super().__init__(message)


class MissingAuthorizationCode(RelayError):
    """OAuth callback arrived without an authorization code."""

    code = "MISSING_AUTHORIZATION_CODE"
    status_code = 400

    def __init__(self, message: str = "Authorization failed. No code received."):
        super().__init__(message)


class NoAccessibleResources(RelayError):
    """The token grants access to no Jira site."""

    code = "NO_ACCESSIBLE_RESOURCES"
    status_code = 502

    def __init__(self, message: str = "No accessible Jira sites found"):
        super().__init__(message)


class TokenRefreshFailed(RelayError):
    """Refreshing an expired token failed; the user must reconnect."""

    code = "TOKEN_REFRESH_FAILED"
    status_code = 401

    def __init__(self, message: str = "Token refresh failed. Please reconnect.", details: Any = None):
        super().__init__(message, details)


class MissingParameter(RelayError):
    """A required request parameter is absent."""

    code = "MISSING_PARAMETER"
    status_code = 400

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message, details={"missing": missing} if missing else None)
        self.missing = missing or []


class UpstreamError(RelayError):
    """The Atlassian API answered with an error or could not be reached."""

    code = "UPSTREAM_ERROR"
    status_code = 502

    def __init__(self, message: str, details: Any = None, upstream_status: int | None = None):
        super().__init__(message, details)
        self.upstream_status = upstream_status


class NotAuthenticated(RelayError):
    """No credential is attached to the session."""

    code = "NOT_AUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ProviderNotConfigured(RelayError):
    """The Atlassian OAuth app credentials are not set."""

    code = "PROVIDER_NOT_CONFIGURED"
    status_code = 503

    def __init__(
        self,
        message: str = "Atlassian OAuth is not configured: set JIRA_CLIENT_ID and JIRA_CLIENT_SECRET",
    ):
        super().__init__(message)
