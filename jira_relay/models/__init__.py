"""
Models package for database models and schemas.

This package contains SQLModel models and schemas:
- Session credential and session payload models
- SessionRecord database table
- Jira request/response schemas

Import from this module for convenience:

    from jira_relay.models import SessionCredential, SessionData, SessionRecord
"""

# Re-export SQLModel for table creation
from sqlmodel import SQLModel

from jira_relay.models.credential import (
    SessionCredential,
    SessionData,
    SessionStatus,
)
from jira_relay.models.jira import (
    CreateTicketRequest,
    CreateTicketResponse,
    DisconnectResponse,
    JiraIssueType,
    JiraProject,
)
from jira_relay.models.session_record import SessionRecord

__all__ = [
    "SQLModel",
    # Session
    "SessionCredential",
    "SessionData",
    "SessionStatus",
    "SessionRecord",
    # Jira
    "CreateTicketRequest",
    "CreateTicketResponse",
    "DisconnectResponse",
    "JiraIssueType",
    "JiraProject",
]
