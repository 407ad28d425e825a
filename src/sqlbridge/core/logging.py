"""Logging configuration using structlog.

Logs go to stderr to keep stdout clean for data output (piping).
"""

import logging
import sys
from typing import Any

import structlog

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class _LazyStderrFactory:
    """Look up sys.stderr when a logger is created.

    CliRunner swaps and closes stderr between invocations, so a handle
    captured at configure() time goes stale.
    """

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def setup_logging(verbose: bool = False, json_logs: bool = False) -> None:
    """Configure structlog for sqlbridge.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise WARNING, so
            library callers only hear about problems.
        json_logs: Render one JSON object per line instead of console text.
    """
    log_level = "debug" if verbose else "warning"
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_LOG_LEVELS[log_level]),
        context_class=dict,
        logger_factory=_LazyStderrFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger, optionally bound with a name.

    Call inside functions or __init__(), never at module level, so the
    configuration from setup_logging() is picked up.
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
