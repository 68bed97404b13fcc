"""Output format selection and writing query results to stdout."""

from __future__ import annotations

import sys
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from driftsql.core.models import QueryResult
    from driftsql.formatters.base import Formatter


class OutputFormat(StrEnum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def detect_tty() -> bool:
    return sys.stdout.isatty()


def resolve_format(format_flag: str | None, configured: str | None = None) -> str:
    """--format, then the config file's default_format, then TTY detection.

    TTY detection picks table for a terminal and csv for a pipe.
    """
    if format_flag is not None:
        return format_flag
    if configured is not None:
        return configured
    return OutputFormat.TABLE if detect_tty() else OutputFormat.CSV


def get_formatter(
    format_flag: str | None = None,
    *,
    configured: str | None = None,
    compact: bool = False,
    width: int = 40,
    no_header: bool = False,
) -> Formatter:
    import driftsql.formatters  # noqa: F401  (populates the registry)
    from driftsql.formatters.base import registry

    options: dict[str, dict[str, object]] = {
        OutputFormat.TABLE: {"width": width},
        OutputFormat.JSON: {"compact": compact},
        OutputFormat.CSV: {"no_header": no_header},
    }
    name = resolve_format(format_flag, configured)
    return registry.get(name, **options.get(name, {}))


def write_output(formatter: Formatter, result: QueryResult) -> None:
    sys.stdout.writelines(f"{line}\n" for line in formatter.format(result))
