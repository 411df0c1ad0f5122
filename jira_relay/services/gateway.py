"""
Authenticated request gateway.

Each operation follows the same order: require a credential in the session,
validate parameters, make the token fresh, call Jira, reshape the answer.
Authentication and parameter checks happen before any network call.
"""

import logging

from jira_relay.core.errors import MissingParameter, NotAuthenticated
from jira_relay.services import jira_client
from jira_relay.services.jira_client import DEFAULT_DESCRIPTION
from jira_relay.services.oauth_config import OAuthProviderConfig
from jira_relay.services.protocols import SessionStoreProtocol
from jira_relay.services.token_refresh import ensure_fresh_token

logger = logging.getLogger(__name__)


def _require_connected(store: SessionStoreProtocol, session_id: str | None) -> None:
    data = store.get(session_id) if session_id else None
    if data is None or data.credential is None:
        raise NotAuthenticated()


async def list_projects(
    *,
    store: SessionStoreProtocol,
    session_id: str | None,
    config: OAuthProviderConfig | None = None,
) -> list[dict]:
    """
    List the Jira projects of the connected site.

    Returns:
        List of {"id", "key", "name"}
    """
    _require_connected(store, session_id)
    credential = await ensure_fresh_token(store=store, session_id=session_id, config=config)

    projects = await jira_client.fetch_projects(credential)
    return [
        {"id": project["id"], "key": project["key"], "name": project["name"]}
        for project in projects
    ]


async def list_issue_types(
    *,
    store: SessionStoreProtocol,
    session_id: str | None,
    project_key: str | None,
    config: OAuthProviderConfig | None = None,
) -> list[dict]:
    """
    List the issue types available in a project.

    Returns:
        List of {"id", "name", "description"}

    Raises:
        MissingParameter: project_key is empty
    """
    _require_connected(store, session_id)
    if not project_key:
        raise MissingParameter("projectKey is required", missing=["projectKey"])

    credential = await ensure_fresh_token(store=store, session_id=session_id, config=config)

    project = await jira_client.fetch_project(credential, project_key)
    return [
        {
            "id": issue_type["id"],
            "name": issue_type["name"],
            "description": issue_type.get("description"),
        }
        for issue_type in project.get("issueTypes", [])
    ]


async def create_ticket(
    *,
    store: SessionStoreProtocol,
    session_id: str | None,
    project_key: str | None,
    issue_type: str | None,
    summary: str | None,
    description: str | None = None,
    config: OAuthProviderConfig | None = None,
) -> dict:
    """
    Create a Jira issue in the connected site.

    Returns:
        {"success": True, "key", "id", "url"} where url points at the
        issue's browse page on the site

    Raises:
        MissingParameter: project_key, issue_type or summary is empty
    """
    _require_connected(store, session_id)

    missing = [
        name
        for name, value in (
            ("projectKey", project_key),
            ("issueType", issue_type),
            ("summary", summary),
        )
        if not value
    ]
    if missing:
        raise MissingParameter(
            "Missing required fields: projectKey, issueType, and summary are required",
            missing=missing,
        )

    credential = await ensure_fresh_token(store=store, session_id=session_id, config=config)

    logger.info("Creating ticket in project %s", project_key)
    created = await jira_client.create_issue(
        credential,
        project_key=project_key,
        issue_type=issue_type,
        summary=summary,
        description=description or DEFAULT_DESCRIPTION,
    )

    key = created["key"]
    logger.info("Ticket created: %s", key)
    return {
        "success": True,
        "key": key,
        "id": str(created["id"]),
        "url": f"{credential.site_url}/browse/{key}",
    }
