"""structlog configuration for the pricing node and its query API.

Keepers log through ``get_logger`` with the market, pool or account they act
on already bound. Block-level fields (height and time) are carried in
contextvars by ``block_context`` so every line emitted while a block is being
processed can be correlated, whichever keeper wrote it.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import IO

import structlog

# Libraries whose INFO output drowns the per-block lines
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


def stringify_values(_logger, _method_name: str, event_dict: dict) -> dict:
    """Render Decimals and datetimes exactly; JSON would otherwise repr() them."""
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, datetime):
            event_dict[key] = value.isoformat()
    return event_dict


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer()
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    raise ValueError(f"Unknown log format: {log_format!r} (expected 'json' or 'console')")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    stream: IO[str] | None = None,
) -> None:
    """Route structlog and stdlib records through one formatter.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" for deployed nodes, "console" for local runs.
        stream: Where lines go; stderr when omitted.
    """
    renderer = _renderer(log_format)
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        stringify_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None, **initial_context) -> structlog.stdlib.BoundLogger:
    """Logger with *initial_context* bound, e.g. ``market_id`` or ``pair``."""
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


@contextmanager
def block_context(block_height: int, block_time: datetime) -> Iterator[None]:
    """Tag every log line emitted inside the block with its height and time."""
    with structlog.contextvars.bound_contextvars(
        block_height=block_height,
        block_time=block_time.isoformat(),
    ):
        yield
