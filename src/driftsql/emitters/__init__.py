"""Schema emitters: render an inspected SchemaDocument as source code."""

from driftsql.emitters.base import (
    Emitter,
    EmitterRegistry,
    get_emitter,
    record_type_names,
    registry,
)
from driftsql.emitters.python import PythonEmitter
from driftsql.emitters.typescript import TypeScriptEmitter

__all__ = [
    "Emitter",
    "EmitterRegistry",
    "PythonEmitter",
    "TypeScriptEmitter",
    "get_emitter",
    "record_type_names",
    "registry",
]
