from contextlib import contextmanager
from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from jira_relay.core.config import settings

# make sure all SQLModel tables are imported before create_all
from jira_relay.models import SessionRecord  # noqa: F401

_connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)


def init_db() -> None:
    """Create the session table if it does not exist yet."""
    SQLModel.metadata.create_all(engine)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Get a database session context manager.

    Used by the database session store and the cleanup task, which run
    outside of FastAPI's dependency injection.

    Usage:
        with get_session() as session:
            session.get(SessionRecord, session_id)
    """
    with Session(engine) as session:
        yield session
