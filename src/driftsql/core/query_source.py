"""Where the CLI gets its SQL from.

Precedence: inline (-e) > file path > piped stdin.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from driftsql.core.exceptions import InputError


def resolve_query_source(
    inline: str | None,
    file_path: str | None,
) -> str:
    """Raises InputError when no source is available."""
    if inline is not None:
        return inline

    if file_path is not None:
        p = Path(file_path)
        if not p.exists():
            msg = (
                f"Query file not found: {file_path}\n"
                "Use -e for inline queries or pipe query via stdin."
            )
            raise InputError(msg)
        return p.read_text()

    if not sys.stdin.isatty():
        return sys.stdin.read()

    msg = "No query provided. Use -e, file path, or pipe to stdin."
    raise InputError(msg)


def parse_param(raw: str) -> Any:
    """Parse one --param value: JSON scalars are decoded, anything else is text.

    ``42`` -> 42, ``true`` -> True, ``null`` -> None, ``'"42"'`` -> "42",
    ``Ada`` -> "Ada".
    """
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    if isinstance(value, (dict, list)):
        return raw
    return value
