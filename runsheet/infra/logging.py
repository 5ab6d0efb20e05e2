"""structlog setup for the gateway and the cue core.

setup_logging() runs once in the gateway lifespan. Request-scoped fields
(request_id, method, run_id) are bound with request_context() and merged
into every event logged while the request is handled.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

# stdlib loggers that are noisy below WARNING even when LOG_LEVEL=DEBUG
_QUIET_LOGGERS = ("sqlalchemy.engine", "asyncio")


def setup_logging(*, json_output: bool = True, log_level: str = "INFO") -> None:
    """Configure structlog and align stdlib logging with the same level.

    Args:
        json_output: JSON lines when True; colored console output otherwise.
        log_level: One of DEBUG, INFO, WARNING, ERROR.
    """
    level = logging.getLevelName(log_level.upper())

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=level, format="%(message)s", force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


@contextmanager
def request_context(**fields: Any) -> Iterator[None]:
    """Bind fields to every log event emitted inside the block.

    None values are dropped so callers can pass optional ids unconditionally.
    """
    bound = {k: v for k, v in fields.items() if v is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield
