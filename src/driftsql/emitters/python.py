"""Python emitter: one TypedDict per table plus a ``Database`` TypedDict."""

from __future__ import annotations

import keyword
from typing import TYPE_CHECKING

from driftsql.core.inspector import TypeCategory, map_database_type
from driftsql.emitters.base import record_type_names, registry

if TYPE_CHECKING:
    from driftsql.core.models import SchemaDocument

_PY_TYPES: dict[TypeCategory, str] = {
    TypeCategory.STRING: "str",
    TypeCategory.NUMBER: "float",
    TypeCategory.BOOLEAN: "bool",
    TypeCategory.TEMPORAL: "datetime.datetime",
    TypeCategory.JSON: "Any",
    TypeCategory.ARRAY: "list[Any]",
    TypeCategory.BINARY: "bytes",
    TypeCategory.UNKNOWN: "Any",
}

_HEADER = '''"""Database row types generated by `driftsql pull`.

Do not edit by hand; rerun the pull to refresh.
"""

from __future__ import annotations

import datetime
from typing import Any, TypedDict
'''


def _is_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


def _typed_dict(name: str, fields: list[tuple[str, str]]) -> list[str]:
    """Class syntax when every key is an identifier, functional syntax otherwise."""
    if all(_is_identifier(key) for key, _ in fields):
        lines = [f"class {name}(TypedDict):"]
        lines.extend(f"    {key}: {annotation}" for key, annotation in fields)
        if not fields:
            lines.append("    pass")
        return lines
    lines = [f"{name} = TypedDict("]
    lines.append(f"    {name!r},")
    lines.append("    {")
    lines.extend(f"        {key!r}: {annotation}," for key, annotation in fields)
    lines.append("    },")
    lines.append(")")
    return lines


def python_type(data_type: str, nullable: bool, driver_type: str) -> str:
    mapped = map_database_type(data_type, nullable, driver_type)
    annotation = _PY_TYPES[mapped.category]
    return f"{annotation} | None" if mapped.nullable else annotation


class PythonEmitter:
    default_filename = "db_types.py"

    def render(self, document: SchemaDocument) -> str:
        names = record_type_names([t.name for t in document.tables])
        blocks: list[list[str]] = []
        for table in document.tables:
            fields = [
                (
                    col.column_name,
                    python_type(col.data_type, col.nullable, document.driver_type),
                )
                for col in table.columns
            ]
            blocks.append(_typed_dict(names[table.name], fields))

        blocks.append(
            _typed_dict("Database", [(t.name, names[t.name]) for t in document.tables])
        )
        body = "\n\n\n".join("\n".join(block) for block in blocks)
        return f"{_HEADER}\n\n{body}\n"


registry.register("python", PythonEmitter)
