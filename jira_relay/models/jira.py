"""
Request and response schemas for the Jira passthrough endpoints.

Field names follow the JSON contract of the front-end (camelCase).
"""

from sqlmodel import SQLModel


class JiraProject(SQLModel):
    id: str
    key: str
    name: str


class JiraIssueType(SQLModel):
    id: str
    name: str
    description: str | None = None


class CreateTicketRequest(SQLModel):
    """
    Body of POST /api/ticket.

    All fields are optional at the schema level so that missing ones are
    reported as MissingParameter rather than a validation error.
    """

    projectKey: str | None = None
    issueType: str | None = None
    summary: str | None = None
    description: str | None = None


class CreateTicketResponse(SQLModel):
    success: bool = True
    key: str
    id: str
    url: str


class DisconnectResponse(SQLModel):
    success: bool
