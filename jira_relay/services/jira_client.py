"""
Jira Cloud REST API v3 client.

Thin async wrappers around the three endpoints the relay forwards to. Every
call is scoped to the credential's cloud id and authenticated with its
bearer token. Non-2xx answers and transport failures raise UpstreamError
carrying whatever detail Atlassian returned.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from jira_relay.core.config import settings
from jira_relay.core.errors import UpstreamError
from jira_relay.models import SessionCredential

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description provided"


def _headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def _api_base(credential: SessionCredential) -> str:
    api_url = settings.ATLASSIAN_API_URL.rstrip("/")
    return f"{api_url}/ex/jira/{credential.tenant_id}/rest/api/3"


def _is_success(response: httpx.Response) -> bool:
    return 200 <= response.status_code < 300


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _provider_message(response: httpx.Response) -> Any:
    """Best human-readable message from a Jira error body."""
    body = _json_or_none(response)
    if isinstance(body, dict):
        if body.get("message"):
            return body["message"]
        if body.get("errorMessages"):
            return "; ".join(body["errorMessages"])
    return response.text or f"HTTP {response.status_code}"


def _provider_errors(response: httpx.Response) -> Any:
    """Structured error detail from a Jira issue-creation error body."""
    body = _json_or_none(response)
    if isinstance(body, dict):
        if body.get("errors"):
            return body["errors"]
        if body.get("errorMessages"):
            return body["errorMessages"]
        if body.get("message"):
            return body["message"]
    return response.text or f"HTTP {response.status_code}"


def build_description_document(text: str) -> dict:
    """Wrap plain text in an Atlassian Document Format document of one paragraph."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [{"type": "text", "text": text}],
            }
        ],
    }


async def _get(credential: SessionCredential, path: str, failure_message: str) -> Any:
    url = f"{_api_base(credential)}{path}"
    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.get(url, headers=_headers(credential.access_token))
    except httpx.HTTPError as e:
        logger.error("%s: %s", failure_message, e)
        raise UpstreamError(failure_message, details=str(e)) from e

    if not _is_success(response):
        details = _provider_message(response)
        logger.error("%s: HTTP %s %s", failure_message, response.status_code, details)
        raise UpstreamError(failure_message, details=details, upstream_status=response.status_code)

    return _success_body(response, failure_message)


def _success_body(response: httpx.Response, failure_message: str) -> Any:
    body = _json_or_none(response)
    if body is None:
        logger.error("%s: HTTP %s with a non-JSON body", failure_message, response.status_code)
        raise UpstreamError(
            failure_message,
            details="Jira returned a non-JSON response",
            upstream_status=response.status_code,
        )
    return body


async def fetch_projects(credential: SessionCredential) -> list[dict]:
    """GET /project: every project visible to the user."""
    return await _get(credential, "/project", "Failed to fetch projects")


async def fetch_project(credential: SessionCredential, project_key: str) -> dict:
    """GET /project/{key}: project detail including its issueTypes."""
    return await _get(
        credential,
        f"/project/{quote(project_key, safe='')}",
        "Failed to fetch issue types",
    )


async def create_issue(
    credential: SessionCredential,
    *,
    project_key: str,
    issue_type: str,
    summary: str,
    description: str,
) -> dict:
    """
    POST /issue with an ADF description.

    Returns:
        Jira's creation response (id, key, self)
    """
    payload = {
        "fields": {
            "project": {"key": project_key},
            "summary": summary,
            "description": build_description_document(description),
            "issuetype": {"name": issue_type},
        }
    }

    try:
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                f"{_api_base(credential)}/issue",
                json=payload,
                headers=_headers(credential.access_token),
            )
    except httpx.HTTPError as e:
        logger.error("Failed to create ticket: %s", e)
        raise UpstreamError("Failed to create ticket", details=str(e)) from e

    if not _is_success(response):
        details = _provider_errors(response)
        logger.error("Failed to create ticket: HTTP %s %s", response.status_code, details)
        raise UpstreamError(
            "Failed to create ticket",
            details=details,
            upstream_status=response.status_code,
        )

    return _success_body(response, "Failed to create ticket")
