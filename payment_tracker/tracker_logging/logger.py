"""
Tracker logging: one JSON line per event, keyed by event_type.

Cycle-wide context (runner name, tick number, block range) lives in structlog
contextvars. The runner and engine bind it once with tracking_context() and
every log line emitted inside that block, from any module, carries it. The
binding is per asyncio task, so admin scans never inherit a runner tick.

LOG_LEVEL sets the threshold; LOG_FORMAT=console switches to the dev renderer.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.contextvars import bound_contextvars, merge_contextvars


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """JSON lines carry the event name under event_type for aggregation."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """(Re)configure structlog; arguments default to LOG_LEVEL / LOG_FORMAT."""
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").strip().lower()

    processors: list[Any] = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]
    if fmt == "json":
        processors += [
            structlog.processors.format_exc_info,
            _event_type,
            structlog.processors.JSONRenderer(default=str),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger: logger = get_logger(__name__)

        logger.info("block_processed", height=123, investments=2)
    """
    return structlog.get_logger(name).bind(logger=name)


@contextmanager
def tracking_context(**values: Any) -> Iterator[None]:
    """Bind values into every log line emitted inside the block; None values are skipped."""
    with bound_contextvars(**{k: v for k, v in values.items() if v is not None}):
        yield
