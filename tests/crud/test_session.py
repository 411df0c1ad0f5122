"""
Tests for relay session CRUD operations.

Validates encrypted, database-backed session storage.
"""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography.fernet import Fernet, InvalidToken
from sqlmodel import Session, select

from jira_relay.core.encryption import SessionCipher
from jira_relay.crud.session import (
    cleanup_expired_sessions_db,
    delete_session_db,
    get_session_db,
    save_session_db,
)
from jira_relay.models import SessionData, SessionRecord
from tests.helpers import make_credential


def _connected_data(ttl: timedelta = timedelta(hours=24)) -> SessionData:
    data = SessionData.new(ttl)
    data.credential = make_credential(access_token="secret-access", refresh_token="secret-refresh")
    return data


class TestSaveSessionDb:
    """Tests for save_session_db."""

    def test_stores_session(self, session: Session):
        data = _connected_data()

        record = save_session_db(session=session, session_id="sid-1", data=data)

        assert record.session_id == "sid-1"
        assert record.expires_at is not None

    def test_tokens_are_encrypted_at_rest(self, session: Session):
        """Neither token appears in the stored bytes."""
        record = save_session_db(session=session, session_id="sid-1", data=_connected_data())

        assert b"secret-access" not in record.data_encrypted
        assert b"secret-refresh" not in record.data_encrypted

    def test_updates_existing_session(self, session: Session):
        data = _connected_data()
        save_session_db(session=session, session_id="sid-1", data=data)

        data.oauth_state = "s2"
        save_session_db(session=session, session_id="sid-1", data=data)

        loaded = get_session_db(session=session, session_id="sid-1")
        assert loaded.oauth_state == "s2"
        assert len(session.exec(select(SessionRecord)).all()) == 1


class TestGetSessionDb:
    """Tests for get_session_db."""

    def test_round_trips_credential(self, session: Session):
        data = _connected_data()
        save_session_db(session=session, session_id="sid-1", data=data)

        loaded = get_session_db(session=session, session_id="sid-1")

        assert loaded.credential.access_token == "secret-access"
        assert loaded.credential.site_url == "https://mysite.atlassian.net"

    def test_returns_none_for_unknown(self, session: Session):
        assert get_session_db(session=session, session_id="missing") is None

    def test_expired_session_is_deleted(self, session: Session):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        data = SessionData(created_at=past, expires_at=past + timedelta(hours=1))
        save_session_db(session=session, session_id="sid-1", data=data)

        assert get_session_db(session=session, session_id="sid-1") is None
        assert session.get(SessionRecord, "sid-1") is None


class TestDeleteSessionDb:
    def test_deletes_session(self, session: Session):
        save_session_db(session=session, session_id="sid-1", data=_connected_data())

        assert delete_session_db(session=session, session_id="sid-1") is True
        assert delete_session_db(session=session, session_id="sid-1") is False


class TestCleanupExpiredSessionsDb:
    """Tests for cleanup_expired_sessions_db."""

    def test_removes_only_expired(self, session: Session):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        save_session_db(
            session=session,
            session_id="old",
            data=SessionData(created_at=past, expires_at=past + timedelta(hours=1)),
        )
        save_session_db(session=session, session_id="new", data=_connected_data())

        assert cleanup_expired_sessions_db(session=session) == 1
        assert session.get(SessionRecord, "old") is None
        assert session.get(SessionRecord, "new") is not None

    def test_nothing_to_remove(self, session: Session):
        assert cleanup_expired_sessions_db(session=session) == 0


class TestSessionCipher:
    """Tests for the SessionData cipher used by the database store."""

    def test_seal_and_open(self):
        cipher = SessionCipher(Fernet.generate_key())
        data = _connected_data()

        assert cipher.open(cipher.seal(data)) == data

    def test_other_key_cannot_open(self):
        blob = SessionCipher(Fernet.generate_key()).seal(_connected_data())

        with pytest.raises(InvalidToken):
            SessionCipher(Fernet.generate_key()).open(blob)
