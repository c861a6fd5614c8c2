"""
structlog setup.

Production emits one JSON object per line; development gets the coloured
console renderer. Request and job context (request path, user being
matched, source being scraped) travels through contextvars, so every log
line written while handling it carries the same keys.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from tenderalert.core.config import Settings, get_settings

NOISY_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


def _renderers(settings: Settings) -> list[Processor]:
    if settings.log_format == "json":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging() -> None:
    """Configure structlog and route stdlib logging through the same level."""
    settings = get_settings()
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *_renderers(settings),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.stdlib.BoundLogger:
    """
    Module-level logger, optionally pre-bound with context.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Tenders matched", user_id=str(user_id), matches=12)
    """
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """
    Bind ``values`` to every log line emitted inside the block.

    Used around one unit of batch work (a user, a scrape source) and
    around each HTTP request.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


class LoggerMixin:
    """Gives integration clients a ``self.logger`` tagged with the client class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(__name__, component=self.__class__.__name__)
