"""structlog setup shared by every Cadence service.

Call `setup_logging` once at startup (from the app lifespan), then use
`get_logger(__name__)` at module level and log snake_case events with
keyword context:

    log.info("sync_dispatched", tasks=3)
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(service_name: str, level: str = "INFO", json_output: bool = False) -> None:
    """Configure stdlib logging and structlog for one service process."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """Return a logger bound to the calling module's name."""
    return structlog.get_logger(name)
