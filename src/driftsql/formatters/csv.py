"""CSV formatter (RFC 4180)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING, Any

from driftsql.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from driftsql.core.models import QueryResult


def _write_row(values: list[str]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(values)
    return buf.getvalue().rstrip("\r\n")


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult) -> Iterator[str]:
        columns = result.column_names()
        if not self.no_header and columns:
            yield _write_row(columns)

        for row in result.rows:
            yield _write_row([_cell(row.get(name)) for name in columns])


registry.register("csv", CSVFormatter)
