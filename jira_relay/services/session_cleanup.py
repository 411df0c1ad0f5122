"""
Session cleanup service for removing expired sessions.

Provides a one-shot cleanup function and an async background task that is
scheduled during application lifespan.
"""

import asyncio
import logging

from jira_relay.services.protocols import SessionStoreProtocol
from jira_relay.services.token_refresh import prune_refresh_locks

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL_SECONDS = 300


async def cleanup_expired_sessions(*, store: SessionStoreProtocol) -> int:
    """
    Remove expired sessions and idle refresh locks.

    Args:
        store: Session store

    Returns:
        Number of expired sessions removed
    """
    count = store.cleanup_expired()
    prune_refresh_locks()
    return count


async def run_cleanup_task(
    *,
    store: SessionStoreProtocol,
    interval_seconds: int = DEFAULT_CLEANUP_INTERVAL_SECONDS,
    stop_event: asyncio.Event | None = None,
) -> None:
    """
    Background task that periodically cleans up expired sessions.

    Runs until cancelled or stop_event is set.

    Args:
        store: Session store
        interval_seconds: Time between cleanup runs
        stop_event: Optional event to signal task shutdown
    """
    logger.info("Session cleanup task started (interval: %d seconds)", interval_seconds)

    while True:
        try:
            if stop_event is not None:
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
                    logger.info("Session cleanup task stopping (stop event set)")
                    break
                except asyncio.TimeoutError:
                    pass
            else:
                await asyncio.sleep(interval_seconds)

            count = await cleanup_expired_sessions(store=store)
            if count > 0:
                logger.info("Cleaned up %d expired sessions", count)
            else:
                logger.debug("No expired sessions to clean up")

        except asyncio.CancelledError:
            logger.info("Session cleanup task cancelled")
            raise
        except Exception:
            logger.exception("Error in session cleanup task")
            # Keep running; the next interval may succeed
            await asyncio.sleep(interval_seconds)

    logger.info("Session cleanup task stopped")
