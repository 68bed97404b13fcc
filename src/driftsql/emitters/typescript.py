"""TypeScript emitter: one interface per table plus a ``Database`` interface."""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING

from driftsql.core.inspector import TypeCategory, map_database_type
from driftsql.emitters.base import record_type_names, registry

if TYPE_CHECKING:
    from driftsql.core.models import SchemaDocument

_TS_TYPES: dict[TypeCategory, str] = {
    TypeCategory.STRING: "string",
    TypeCategory.NUMBER: "number",
    TypeCategory.BOOLEAN: "boolean",
    TypeCategory.TEMPORAL: "Date",
    TypeCategory.JSON: "any",
    TypeCategory.ARRAY: "any[]",
    TypeCategory.BINARY: "Buffer",
    TypeCategory.UNKNOWN: "any",
}

_TS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_HEADER = "// Database row types generated by `driftsql pull`. Do not edit by hand.\n"


def _property(name: str) -> str:
    return name if _TS_IDENTIFIER.match(name) else json.dumps(name)


def typescript_type(data_type: str, nullable: bool, driver_type: str) -> str:
    mapped = map_database_type(data_type, nullable, driver_type)
    annotation = _TS_TYPES[mapped.category]
    return f"{annotation} | null" if mapped.nullable else annotation


def _interface(name: str, fields: list[tuple[str, str]]) -> str:
    lines = [f"export interface {name} {{"]
    lines.extend(f"  {_property(key)}: {annotation};" for key, annotation in fields)
    lines.append("}")
    return "\n".join(lines)


class TypeScriptEmitter:
    default_filename = "db-types.ts"

    def render(self, document: SchemaDocument) -> str:
        names = record_type_names([t.name for t in document.tables])
        blocks = [
            _interface(
                names[table.name],
                [
                    (
                        col.column_name,
                        typescript_type(
                            col.data_type, col.nullable, document.driver_type
                        ),
                    )
                    for col in table.columns
                ],
            )
            for table in document.tables
        ]
        blocks.append(
            _interface("Database", [(t.name, names[t.name]) for t in document.tables])
        )
        return _HEADER + "\n" + "\n\n".join(blocks) + "\n"


registry.register("typescript", TypeScriptEmitter)
