"""
FastAPI application entrypoint for the Jira relay.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jira_relay.api.routes.router import router as api_router
from jira_relay.core.config import settings
from jira_relay.core.errors import RelayError
from jira_relay.core.logging import configure_logging
from jira_relay.services.session_cleanup import run_cleanup_task
from jira_relay.services.session_store import get_session_store

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if not settings.is_oauth_configured:
        logger.warning(
            "JIRA_CLIENT_ID/JIRA_CLIENT_SECRET not set; /auth/jira will fail until configured"
        )
    logger.info(
        "%s %s ready on port %d (callback URL: %s)",
        settings.PROJECT_NAME,
        settings.APP_VERSION,
        settings.PORT,
        settings.CALLBACK_URL,
    )

    stop_event = asyncio.Event()
    cleanup_task = asyncio.create_task(
        run_cleanup_task(
            store=get_session_store(),
            interval_seconds=settings.SESSION_CLEANUP_INTERVAL_SECONDS,
            stop_event=stop_event,
        )
    )
    try:
        yield
    finally:
        stop_event.set()
        await cleanup_task


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.APP_VERSION,
        description="Relay performing Atlassian OAuth 2.0 (3LO) and forwarding Jira REST calls.",
        lifespan=lifespan,
    )

    if settings.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.all_cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(RelayError, relay_error_handler)
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the relay with uvicorn."""
    uvicorn.run("jira_relay.main:app", host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
