"""structlog setup for driftsql.

Logs always go to stderr; stdout carries query output and generated files.
``DRIFTSQL_LOG_LEVEL`` and ``DRIFTSQL_LOG_FORMAT`` (``console`` or ``json``)
override the defaults when the caller does not pass them explicitly.
"""

import logging
import os
import sys
from typing import Any

import structlog

from driftsql.core.exceptions import ConfigError

LOG_LEVEL_ENV = "DRIFTSQL_LOG_LEVEL"
LOG_FORMAT_ENV = "DRIFTSQL_LOG_FORMAT"

_LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class _LazyStderrFactory:
    """Look up sys.stderr per logger, so swapped streams (CliRunner) are honoured."""

    def __call__(self, *args: Any, **kwargs: Any) -> structlog.PrintLogger:
        return structlog.PrintLogger(file=sys.stderr)


def _renderer(fmt: str) -> Any:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    if fmt == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    msg = f"Unknown log format {fmt!r}. Available: console, json"
    raise ConfigError(msg)


def setup_logging(
    verbose: bool = False, level: str | None = None, fmt: str | None = None
) -> None:
    """Configure structlog.

    Args:
        verbose: DEBUG instead of INFO when no level is given.
        level: Level name; beats ``DRIFTSQL_LOG_LEVEL`` and ``verbose``.
        fmt: ``console`` or ``json``; beats ``DRIFTSQL_LOG_FORMAT``.

    Raises ConfigError for unknown level or format names.
    """
    log_level = (
        level or os.environ.get(LOG_LEVEL_ENV) or ("debug" if verbose else "info")
    ).lower()
    if log_level not in _LOG_LEVELS:
        available = ", ".join(_LOG_LEVELS)
        msg = f"Unknown log level {log_level!r}. Available: {available}"
        raise ConfigError(msg)
    renderer = _renderer((fmt or os.environ.get(LOG_FORMAT_ENV) or "console").lower())

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
    """Logger bound with ``logger=name``. Call it inside functions, not at import."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger
