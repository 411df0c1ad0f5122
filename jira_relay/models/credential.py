"""
Session credential and session payload models.

This module contains:
- SessionCredential: the Atlassian tokens and site a session is connected to
- SessionData: everything the session store keeps for one session id
"""

from datetime import datetime, timedelta, timezone

from sqlmodel import Field, SQLModel


def _as_utc(value: datetime) -> datetime:
    # Handle naive datetime (e.g., from SQLite or JSON without offset)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionCredential(SQLModel):
    """
    Atlassian credential produced by a completed OAuth handshake.

    Only the token fields change after creation, and only on refresh.
    tenant_id, site_name and site_url describe the Jira site chosen at
    handshake time and stay fixed for the life of the credential.

    Attributes:
        access_token: Bearer token for the Jira REST API.
        refresh_token: Rotating token used to mint a new access token.
        token_expiry: UTC instant after which access_token is invalid.
        tenant_id: Atlassian cloud id the token is scoped to.
        site_name: Display name of the Jira site.
        site_url: Base URL of the Jira site (e.g. https://x.atlassian.net).
    """

    access_token: str
    refresh_token: str
    token_expiry: datetime
    tenant_id: str
    site_name: str
    site_url: str

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once now has reached token_expiry."""
        if now is None:
            now = datetime.now(timezone.utc)
        return _as_utc(now) >= _as_utc(self.token_expiry)

    def with_tokens(
        self,
        *,
        access_token: str,
        refresh_token: str,
        token_expiry: datetime,
    ) -> "SessionCredential":
        """Copy of this credential with rotated tokens and the same site."""
        return self.model_copy(
            update={
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_expiry": token_expiry,
            }
        )


class SessionData(SQLModel):
    """
    Value stored in the session store under a session id.

    Attributes:
        oauth_state: Pending CSRF state of an in-flight handshake, if any.
        credential: Credential of a completed handshake, if any.
        created_at: When the session was created.
        expires_at: When the session store may forget the session.
    """

    oauth_state: str | None = None
    credential: SessionCredential | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime | None = None

    @classmethod
    def new(cls, ttl: timedelta) -> "SessionData":
        now = datetime.now(timezone.utc)
        return cls(created_at=now, expires_at=now + ttl)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        return _as_utc(now) >= _as_utc(self.expires_at)


class SessionStatus(SQLModel):
    """Public connection status. Never exposes tokens."""

    connected: bool
    site: str | None = None
    siteUrl: str | None = None
