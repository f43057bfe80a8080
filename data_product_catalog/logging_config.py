"""
Structured logging setup.

JSON lines for deployed environments, coloured key/value output for a local
console. Both renderers share the same processor chain so log events look
the same apart from formatting.
"""

import logging
import sys
from typing import List, Optional, TextIO

import structlog
from structlog.types import Processor

from .config import get_settings


def configure_logging(stream: Optional[TextIO] = None) -> None:
    """Configure structlog and the stdlib root logger from settings.

    Logs go to stdout unless another ``stream`` is given; the MCP server
    passes stderr because stdout carries its protocol.
    """
    settings = get_settings()

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "console":
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        force=True,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )
