"""
SessionRecord model for storing relay sessions in the database.

Used by the database session store so sessions survive restarts and can be
shared by several relay instances pointing at the same database.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, LargeBinary
from sqlmodel import Field, SQLModel


class SessionRecord(SQLModel, table=True):
    """
    One relay session, keyed by the opaque session id from the cookie.

    The SessionData payload (which includes the Atlassian tokens) is stored
    as Fernet-encrypted JSON.

    Attributes:
        session_id: Random session identifier (primary key)
        data_encrypted: Encrypted JSON of the SessionData payload
        created_at: When the session was created
        expires_at: When the session becomes eligible for cleanup
    """

    __tablename__ = "relay_sessions"

    session_id: str = Field(primary_key=True, max_length=64)
    data_encrypted: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
    )
    expires_at: datetime | None = Field(
        default=None, sa_type=DateTime(timezone=True), index=True
    )

    def is_expired(self) -> bool:
        """
        Check if this session has expired.

        Returns:
            True if expires_at is set and in the past.
        """
        if self.expires_at is None:
            return False

        expires = self.expires_at

        # Handle naive datetime (e.g., from SQLite in tests)
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)

        return datetime.now(timezone.utc) >= expires
