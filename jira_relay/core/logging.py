"""
Logging setup for the relay.

Modules log through ``logging.getLogger(__name__)``; this only configures
the root handler and format once at application start.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a consistent format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs every request URL at INFO, which is noise for a relay
    logging.getLogger("httpx").setLevel(logging.WARNING)
