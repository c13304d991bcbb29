"""
Structured logging for the balance service.

JSON lines by default; a colored console renderer when running at DEBUG.
Both structlog loggers and plain ``logging.getLogger(__name__)`` loggers end
up in the same handler.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings

_NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx")

# Chain adapters and the token fan-out; their per-token debug lines are the
# ones worth turning up without flooding the rest of the service
UPSTREAM_LOGGERS = ("tokenscope.providers", "tokenscope.services.aggregator")


def _level(name: Optional[str], default: int) -> int:
    if not name:
        return default
    return getattr(logging, name.upper(), default)


def setup_logging(log_level: Optional[str] = None, upstream_log_level: Optional[str] = None) -> None:
    """Route stdlib and structlog output through one formatter.

    Args:
        log_level: Override log level (default: from settings.log_level)
        upstream_log_level: Level for adapter and aggregator loggers
            (default: settings.upstream_log_level, else the root level)
    """
    level = _level(log_level or settings.log_level, logging.INFO)
    upstream_level = _level(upstream_log_level or settings.upstream_log_level, level)
    is_dev = level == logging.DEBUG

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Per-request upstream chatter is already summarized by our own loggers
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for name in UPSTREAM_LOGGERS:
        logging.getLogger(name).setLevel(upstream_level)
