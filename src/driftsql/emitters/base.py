"""Emitter protocol, registry and shared naming helpers."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from driftsql.core.models import SchemaDocument

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_]")


@runtime_checkable
class Emitter(Protocol):
    """Turns a SchemaDocument into the full text of one source file."""

    default_filename: str

    def render(self, document: SchemaDocument) -> str: ...


class EmitterRegistry:
    def __init__(self) -> None:
        self._emitters: dict[str, type[Emitter]] = {}

    def register(self, name: str, emitter_class: type[Emitter]) -> None:
        self._emitters[name] = emitter_class

    def get(self, name: str) -> Emitter:
        """Raises KeyError for unknown names."""
        if name not in self._emitters:
            available = ", ".join(sorted(self._emitters))
            msg = f"Unknown language {name!r}. Available: {available}"
            raise KeyError(msg)
        return self._emitters[name]()

    @property
    def available(self) -> list[str]:
        return sorted(self._emitters)


registry = EmitterRegistry()


def get_emitter(lang: str) -> Emitter:
    import driftsql.emitters.python  # noqa: F401
    import driftsql.emitters.typescript  # noqa: F401

    return registry.get(lang)


def record_type_name(table: str) -> str:
    name = _INVALID_NAME_CHARS.sub("_", table) or "_"
    if name[0].isdigit():
        name = f"T{name}"
    return name[0].upper() + name[1:]


def record_type_names(tables: list[str]) -> dict[str, str]:
    """Map each table name to a unique record type name, in input order."""
    taken: set[str] = {"Database"}
    names: dict[str, str] = {}
    for table in tables:
        base = record_type_name(table)
        candidate = base
        suffix = 2
        while candidate in taken:
            candidate = f"{base}{suffix}"
            suffix += 1
        taken.add(candidate)
        names[table] = candidate
    return names
