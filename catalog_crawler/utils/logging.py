"""Structured logging setup for the crawler, built on structlog.

Every module asks :func:`get_logger` for a named logger and emits
snake_case events with keyword context, e.g.
``logger.info("page_fetched", category="nes", page=3, new=12)``.

Two renderers share one processor chain: a coloured console renderer for
interactive runs and a JSON renderer for production or piped output.
``APP_ENV=production`` (or ``json_output=True``) selects JSON.

Log lines go to stderr so the CLI's stdout summary stays parseable.
The stdlib root logger is routed through the same formatter, which keeps
httpx's own warnings in the same shape as ours.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and bridge stdlib logging into it.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        json_output: Force JSON rendering regardless of ``APP_ENV``.

    Returns:
        The root structlog logger.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors()
    renderer: structlog.types.Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO; keep that out of crawl output.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
