"""
Jira passthrough routes.

Each route runs the token freshness check before calling Jira. Errors are
RelayError subclasses rendered by the application exception handler.
"""

from fastapi import APIRouter

from jira_relay.api.deps import SessionIdDep, StoreDep
from jira_relay.models import (
    CreateTicketRequest,
    CreateTicketResponse,
    JiraIssueType,
    JiraProject,
)
from jira_relay.services import gateway

router = APIRouter(prefix="/api", tags=["jira"])


@router.get("/projects", response_model=list[JiraProject])
async def list_projects(store: StoreDep, session_id: SessionIdDep):
    """List all Jira projects accessible on the connected site."""
    return await gateway.list_projects(store=store, session_id=session_id)


@router.get("/issuetypes", response_model=list[JiraIssueType])
async def list_issue_types(
    store: StoreDep,
    session_id: SessionIdDep,
    projectKey: str | None = None,
):
    """List the issue types available in a project."""
    return await gateway.list_issue_types(
        store=store,
        session_id=session_id,
        project_key=projectKey,
    )


@router.post("/ticket", response_model=CreateTicketResponse)
async def create_ticket(
    store: StoreDep,
    session_id: SessionIdDep,
    body: CreateTicketRequest | None = None,
):
    """
    Create a Jira ticket.

    Body: { projectKey, issueType, summary, description }. A missing body
    counts as an empty one.
    """
    if body is None:
        body = CreateTicketRequest()
    return await gateway.create_ticket(
        store=store,
        session_id=session_id,
        project_key=body.projectKey,
        issue_type=body.issueType,
        summary=body.summary,
        description=body.description,
    )
