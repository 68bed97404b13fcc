"""JSON formatter: one array of row objects."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from driftsql.formatters.base import registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from driftsql.core.models import QueryResult


def _serialize_value(val: Any) -> Any:
    if isinstance(val, (int, float, str, bool, type(None))):
        return val
    if isinstance(val, (bytes, bytearray, memoryview)):
        return bytes(val).hex()
    return str(val)


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        rows = [
            {key: _serialize_value(val) for key, val in row.items()}
            for row in result.rows
        ]
        if self.compact:
            yield json.dumps(rows)
        else:
            yield json.dumps(rows, indent=2)


registry.register("json", JSONFormatter)
