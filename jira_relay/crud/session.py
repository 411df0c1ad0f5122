"""
CRUD operations for the SessionRecord model.

Handles storing, retrieval, deletion and cleanup of relay sessions kept in
the database. Payloads are encrypted before they are written.
"""

from datetime import datetime, timezone

from sqlmodel import Session, select

from jira_relay.core.encryption import get_session_cipher
from jira_relay.models import SessionData, SessionRecord


def save_session_db(
    *,
    session: Session,
    session_id: str,
    data: SessionData,
) -> SessionRecord:
    """
    Create or replace the stored payload of a session.

    Args:
        session: Database session
        session_id: Opaque relay session id
        data: Session payload to store (will be encrypted)

    Returns:
        Created or updated SessionRecord
    """
    encrypted = get_session_cipher().seal(data)

    record = session.get(SessionRecord, session_id)
    if record is None:
        record = SessionRecord(
            session_id=session_id,
            data_encrypted=encrypted,
            created_at=data.created_at,
            expires_at=data.expires_at,
        )
    else:
        record.data_encrypted = encrypted
        record.expires_at = data.expires_at

    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def get_session_db(
    *,
    session: Session,
    session_id: str,
) -> SessionData | None:
    """
    Load and decrypt a session payload.

    Expired records are deleted and reported as missing.

    Args:
        session: Database session
        session_id: Opaque relay session id

    Returns:
        SessionData if found and not expired, None otherwise

    Raises:
        cryptography.fernet.InvalidToken: If the payload cannot be decrypted
    """
    record = session.get(SessionRecord, session_id)
    if record is None:
        return None

    if record.is_expired():
        session.delete(record)
        session.commit()
        return None

    return get_session_cipher().open(record.data_encrypted)


def delete_session_db(*, session: Session, session_id: str) -> bool:
    """
    Delete a stored session.

    Returns:
        True if deleted, False if not found
    """
    record = session.get(SessionRecord, session_id)
    if record is None:
        return False

    session.delete(record)
    session.commit()
    return True


def cleanup_expired_sessions_db(*, session: Session) -> int:
    """
    Remove all expired sessions from the database.

    Args:
        session: Database session

    Returns:
        Number of expired sessions removed
    """
    now = datetime.now(timezone.utc)
    statement = select(SessionRecord).where(SessionRecord.expires_at < now)
    expired = session.exec(statement).all()

    count = len(expired)
    for record in expired:
        session.delete(record)

    if count > 0:
        session.commit()

    return count
