"""Rich table formatter."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from driftsql.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from driftsql.core.models import QueryResult

_NO_RESULTS = "No results"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


class TableFormatter:
    def __init__(self, width: int = 40) -> None:
        self.width = width

    def format(self, result: QueryResult) -> Iterator[str]:
        if not result.rows:
            if result.command and result.command != "SELECT":
                yield f"{result.command} {result.row_count}"
            else:
                yield _NO_RESULTS
            return

        columns = result.column_names()
        table = Table(show_edge=True, pad_edge=True)
        for name in columns:
            table.add_column(name, no_wrap=True)

        for row in result.rows:
            cells = (row.get(name) for name in columns)
            table.add_row(
                *(_truncate("" if v is None else str(v), self.width) for v in cells)
            )

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        console.print(table)
        yield buf.getvalue().rstrip("\n")


registry.register("table", TableFormatter)
