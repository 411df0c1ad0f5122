import logging

from fastapi import APIRouter

from jira_relay.api.deps import StoreDep
from jira_relay.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health-check")
async def health_check(store: StoreDep):
    """
    Health check endpoint that verifies the relay and its session store.
    """
    # A lookup of an unknown id exercises the backend without side effects
    try:
        store.get("health-check")
        store_status = "healthy"
        store_message = "Session store reachable"
    except Exception as e:
        logger.error("Session store health check failed: %s", e)
        store_status = "unhealthy"
        store_message = "Session store unreachable"

    overall_status = "healthy" if store_status == "healthy" else "unhealthy"

    return {
        "status": overall_status,
        "message": "Relay is running",
        "oauth_configured": settings.is_oauth_configured,
        "session_store": {
            "backend": settings.SESSION_BACKEND,
            "status": store_status,
            "message": store_message,
        },
    }
